from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

UNREGISTERED = "unregistered"


def as_utc(value: datetime | None) -> datetime | None:
    """Время без смещения (старые или отредактированные вручную записи) считается UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class VisitLog(BaseModel):
    """
    Запись о переходе по ссылке.

    Атрибуты:
        ip (str): IP посетителя.
        time (datetime): Время перехода (UTC).
    """

    ip: str = ""
    time: datetime

    @field_validator("time")
    @classmethod
    def time_as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class LinkRecord(BaseModel):
    """
    Класс ссылки, хранимой в JSON-документе.

    Атрибуты:
        short_code (str): Уникальный короткий код, ключ документа.
        long_url (str): Исходный URL, как его ввёл пользователь (схема может отсутствовать).
        short_url (str): Полный публичный короткий URL.
        created_at (datetime): Дата и время создания ссылки.
        last_reset (datetime | None): Время последнего обнуления дневного счётчика.
        today_visits (int): Переходы за текущие сутки.
        total_visits (int): Переходы за всё время.
        ip (str): IP создателя ссылки.
        logs (list[VisitLog]): Последние переходы, самые свежие первыми.
        user_id (str | None): Идентификатор владельца; None для гостевых ссылок.
        username (str): Имя владельца на момент создания или "unregistered".
        memo (str): Заметка к ссылке.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    short_code: str = ""
    long_url: str
    short_url: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_reset: datetime | None = None
    today_visits: int = Field(0, ge=0)
    total_visits: int = Field(0, ge=0)
    ip: str = ""
    logs: list[VisitLog] = Field(default_factory=list)
    user_id: str | None = None
    username: str = UNREGISTERED
    memo: str = ""

    @field_validator("created_at", "last_reset")
    @classmethod
    def dates_as_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
