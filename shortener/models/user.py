from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class UserRecord(BaseModel):
    """
    Класс пользователя.

    Атрибуты:
        id (str): Уникальный идентификатор пользователя.
        username (str): Уникальное имя пользователя.
        password_hash (str): Хэш пароля пользователя.
        email (str | None): Адрес электронной почты пользователя (необязательный).
        is_admin (bool): Признак администратора.
        created_at (datetime | None): Дата и время создания записи пользователя.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    username: str
    password_hash: str = ""
    email: str | None = None
    is_admin: bool = False
    created_at: datetime | None = None

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
