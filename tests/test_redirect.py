import pytest


@pytest.mark.asyncio
async def test_redirect_adds_scheme(async_client, link_store):
    link = link_store.create("example.com")
    response = await async_client.get(f"/{link.short_code}", follow_redirects=False,
                                      headers={"User-Agent": "Mozilla/5.0"})
    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com"

    stored = link_store.get(link.short_code)
    assert stored.today_visits == 1
    assert stored.total_visits == 1
    assert stored.logs[0].ip == "127.0.0.1"


@pytest.mark.asyncio
async def test_redirect_keeps_scheme(async_client, link_store):
    link = link_store.create("https://example.com")
    response = await async_client.get(f"/{link.short_code}", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com"


@pytest.mark.asyncio
async def test_redirect_by_bot_is_not_counted(async_client, link_store):
    link = link_store.create("https://example.com")
    response = await async_client.get(f"/{link.short_code}", follow_redirects=False,
                                      headers={"User-Agent": "Mozilla/5.0 (compatible; Googlebot/2.1)"})
    assert response.status_code == 302
    stored = link_store.get(link.short_code)
    assert (stored.today_visits, stored.total_visits, stored.logs) == (0, 0, [])


@pytest.mark.asyncio
async def test_redirect_unknown_code(async_client):
    response = await async_client.get("/abc123", follow_redirects=False)
    assert response.status_code == 404
