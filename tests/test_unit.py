import string

import pytest

from shortener.services.codes import generate_short_code
from shortener.services.links import redirect_target
from shortener.services.visits import SubstringBotClassifier


def test_generate_short_code_length():
    code = generate_short_code()
    # Ожидаем, что длина сгенерированного кода равна 6 символам
    assert len(code) == 6


def test_generate_short_code_alphanumeric():
    code = generate_short_code()
    allowed_chars = string.ascii_letters + string.digits
    for char in code:
        assert char in allowed_chars


def test_generate_short_code_rerolls_on_collision(mocker):
    choices = mocker.patch("shortener.services.codes.random.choices",
                           side_effect=[list("aaaaaa"), list("bbbbbb"), list("cccccc")])
    assert generate_short_code({"aaaaaa", "bbbbbb"}) == "cccccc"
    assert choices.call_count == 3


def test_generate_short_code_may_reuse_deleted_codes(mocker):
    # проверяются только живые ключи
    mocker.patch("shortener.services.codes.random.choices", return_value=list("gone42"))
    assert generate_short_code(set()) == "gone42"


@pytest.mark.parametrize("long_url, expected", [
    ("example.com", "https://example.com"),
    ("https://example.com", "https://example.com"),
    ("http://example.com/a?b=c", "http://example.com/a?b=c"),
    ("ftp://files.example.com", "ftp://files.example.com"),
    ("example.com:8080/path", "https://example.com:8080/path"),
])
def test_redirect_target(long_url, expected):
    assert redirect_target(long_url) == expected


@pytest.mark.parametrize("agent", [
    "Googlebot/2.1 (+http://www.google.com/bot.html)",
    "Mozilla/5.0 (compatible; bingbot/2.0)",
    "Baiduspider",
    "SomeCrawler/1.0",
    "UptimeRobot Monitor",
    "Render/1.0",
    "ELB-HealthChecker/2.0",
])
def test_bot_classifier_detects_bots(agent):
    assert SubstringBotClassifier().is_bot(agent)


@pytest.mark.parametrize("agent", [
    None,
    "",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/120.0 Safari/537.36",
])
def test_bot_classifier_allows_browsers(agent):
    assert not SubstringBotClassifier().is_bot(agent)
