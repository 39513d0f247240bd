import logging
import uuid
from datetime import datetime, timezone

from passlib.context import CryptContext
from pydantic import ValidationError as PydanticValidationError

from shortener.core.errors import NotFound, PersistenceError, ValidationError
from shortener.core.storage import AtomicFileStore
from shortener.models.user import UserRecord

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

EMPTY_DOCUMENT = {"version": 0, "users": []}


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def _new_id() -> str:
    return uuid.uuid4().hex


def _fill_ids_and_roles(users: list[dict]) -> bool:
    changed = False
    for user in users:
        if not isinstance(user, dict):
            continue
        if not user.get("id"):
            user["id"] = _new_id()
            changed = True
        if not isinstance(user.get("isAdmin"), bool):
            user["isAdmin"] = False
            changed = True
    return changed


def _stringify_ids(users: list[dict]) -> bool:
    changed = False
    for user in users:
        if isinstance(user, dict) and not isinstance(user.get("id"), str):
            user["id"] = str(user["id"]) if user.get("id") is not None else _new_id()
            changed = True
    return changed


# (версия, шаг); шаги применяются по порядку к документам с меньшей версией
MIGRATIONS = [
    (1, _fill_ids_and_roles),
    (2, _stringify_ids),
]


class UserStore:
    """
    Пользователи в JSON-документе вида {"version": N, "users": [...]}.

    Атрибуты:
        storage (AtomicFileStore): Файл с документом пользователей.
    """

    def __init__(self, storage: AtomicFileStore):
        self.storage = storage

    def _load_document(self) -> dict:
        document = self.storage.load(EMPTY_DOCUMENT)
        if not isinstance(document, dict) or not isinstance(document.get("users"), list):
            logger.error("Документ %s имеет неверную структуру, используется пустой", self.storage.path)
            return {"version": 0, "users": []}
        return document

    def _save_document(self, document: dict) -> None:
        if not self.storage.save(document):
            raise PersistenceError()

    def migrate(self) -> int:
        """
        Применяет недостающие миграции схемы.

        Returns:
            int: Версия документа после миграции.

        - Документ записывается только если какой-то шаг что-то изменил или версия выросла.
        - Повторный запуск ничего не меняет.
        """

        with self.storage.lock:
            document = self._load_document()
            version = document.get("version", 0)
            changed = False
            for target, step in MIGRATIONS:
                if version < target:
                    step(document["users"])
                    version = target
                    changed = True
            if changed:
                document["version"] = version
                self._save_document(document)
                logger.info("users.json мигрирован до версии %d", version)
        return version

    def list(self) -> list[UserRecord]:
        users = []
        for row in self._load_document()["users"]:
            try:
                users.append(UserRecord.model_validate(row))
            except PydanticValidationError:
                logger.exception("Пользователь в %s повреждён и пропущен", self.storage.path)
        return users

    def get(self, user_id: str) -> UserRecord:
        for user in self.list():
            if user.id == user_id:
                return user
        raise NotFound("Пользователь не найден")

    def get_by_username(self, username: str) -> UserRecord | None:
        for user in self.list():
            if user.username == username:
                return user
        return None

    def authenticate(self, username: str, password: str) -> UserRecord | None:
        user = self.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Неудачная попытка входа: %s", username)
            return None
        return user

    def create(self, username: str, password: str, email: str | None = None,
               is_admin: bool = False) -> UserRecord:
        if not username or not password:
            raise ValidationError("Имя пользователя и пароль обязательны")

        with self.storage.lock:
            document = self._load_document()
            if any(u.get("username") == username for u in document["users"]):
                raise ValidationError("Имя пользователя уже занято")
            user = UserRecord(
                id=_new_id(),
                username=username,
                password_hash=hash_password(password),
                email=email,
                is_admin=is_admin,
                created_at=datetime.now(timezone.utc),
            )
            document["users"].append(user.to_document())
            self._save_document(document)
        return user

    def delete(self, user_id: str) -> None:
        with self.storage.lock:
            document = self._load_document()
            users = [u for u in document["users"] if u.get("id") != user_id]
            if len(users) == len(document["users"]):
                raise NotFound("Пользователь не найден")
            document["users"] = users
            self._save_document(document)

    def ensure_admin(self, username: str | None, password: str | None) -> UserRecord | None:
        """Создаёт администратора, если пользователей ещё нет и учётные данные заданы."""

        if not username or not password or self.list():
            return None
        logger.info("Создан администратор по умолчанию: %s", username)
        return self.create(username, password, is_admin=True)
