import glob
import logging
import os
import re
from datetime import datetime, timezone

from pydantic import ValidationError as PydanticValidationError

from shortener.core.errors import Forbidden, NotFound, PersistenceError, ValidationError
from shortener.core.storage import AtomicFileStore
from shortener.models.link import UNREGISTERED, LinkRecord
from shortener.services.codes import generate_short_code
from shortener.services.visits import SubstringBotClassifier, apply_visit

logger = logging.getLogger(__name__)

DAILY_LIMIT = 5000
SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def redirect_target(long_url: str) -> str:
    return long_url if SCHEME_RE.match(long_url) else f"https://{long_url}"


def check_owner(record: LinkRecord, requester_id: str | None, is_admin: bool = False) -> None:
    if not is_admin and (requester_id is None or record.user_id != requester_id):
        raise Forbidden("Вы не являетесь владельцем данной ссылки")


class LinkStore:
    """
    Коллекция ссылок "короткий код -> LinkRecord" в одном JSON-документе.

    Каждое изменение читает весь документ, меняет его в памяти и записывает целиком
    через AtomicFileStore под блокировкой документа.

    Атрибуты:
        storage (AtomicFileStore): Файл с документом ссылок.
        base_url (str): Публичный адрес сервиса для построения short_url.
        bot_classifier: Объект с методом is_bot(user_agent) -> bool.
    """

    def __init__(self, storage: AtomicFileStore, base_url: str, bot_classifier=None):
        self.storage = storage
        self.base_url = base_url.rstrip("/")
        self.bot_classifier = bot_classifier or SubstringBotClassifier()

    def _load(self) -> tuple[dict[str, LinkRecord], dict]:
        """
        Читает документ ссылок.

        Returns:
            tuple: (записи по коду, сырые строки, не прошедшие проверку схемы).

        - Повреждённая строка пишется в лог и не участвует в чтении, но возвращается
          отдельно, чтобы _save записал её обратно без изменений.
        """

        raw = self.storage.load({})
        if not isinstance(raw, dict):
            logger.error("Документ %s не является объектом, используется пустой", self.storage.path)
            return {}, {}
        records, broken = {}, {}
        for code, row in raw.items():
            try:
                if not isinstance(row, dict):
                    raise TypeError(f"ожидался объект, получено {type(row).__name__}")
                records[code] = LinkRecord.model_validate({**row, "shortCode": code})
            except (PydanticValidationError, TypeError):
                logger.exception("Ссылка %s в %s повреждена и пропущена", code, self.storage.path)
                broken[code] = row
        return records, broken

    def _save(self, records: dict[str, LinkRecord], broken: dict | None = None) -> None:
        document = dict(broken or {})
        document.update((code, record.to_document()) for code, record in records.items())
        if not self.storage.save(document):
            raise PersistenceError()

    def create(self, long_url: str, creator_ip: str = "", owner_id: str | None = None,
               owner_username: str | None = None) -> LinkRecord:
        """
        Создаёт новую короткую ссылку.

        Args:
            long_url (str): Исходный URL. Схема не обязательна, она подставляется при редиректе.
            creator_ip (str): IP клиента, создавшего ссылку.
            owner_id (str | None): Идентификатор владельца; None для гостя.
            owner_username (str | None): Имя владельца на момент создания.

        Returns:
            LinkRecord: Сохранённая запись с нулевыми счётчиками.

        - Если long_url пустой, генерируется ValidationError.
        - Код генерируется заново, пока совпадает с одним из существующих.
        """

        if not long_url or not long_url.strip():
            raise ValidationError("URL не указан")

        with self.storage.lock:
            records, broken = self._load()
            code = generate_short_code(records.keys() | broken.keys())
            record = LinkRecord(
                short_code=code,
                long_url=long_url.strip(),
                short_url=f"{self.base_url}/{code}",
                ip=creator_ip or "",
                user_id=owner_id,
                username=owner_username or UNREGISTERED,
            )
            records[code] = record
            self._save(records, broken)
        return record

    def get(self, code: str) -> LinkRecord:
        record = self._load()[0].get(code)
        if record is None:
            raise NotFound()
        return record

    def list(self, owner_id: str | None = None, is_admin: bool = False) -> list[LinkRecord]:
        records = self._load()[0].values()
        if not is_admin:
            records = [r for r in records if owner_id is not None and r.user_id == owner_id]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def details(self, code: str) -> dict:
        record = self.get(code)
        return {
            "code": record.short_code,
            "shortUrl": record.short_url,
            "longUrl": record.long_url,
            "createdAt": record.created_at,
            "ip": record.ip,
            "todayVisits": record.today_visits,
            "totalVisits": record.total_visits,
            "dailyLimit": DAILY_LIMIT,
            "logs": [log.model_dump(mode="json") for log in record.logs],
            "memo": record.memo,
        }

    def update_memo(self, code: str, text: str) -> LinkRecord:
        with self.storage.lock:
            records, broken = self._load()
            record = records.get(code)
            if record is None:
                raise NotFound()
            record.memo = text or ""
            self._save(records, broken)
        return record

    def record_visit(self, code: str, visitor_ip: str, is_bot: bool = False,
                     now: datetime | None = None) -> LinkRecord:
        """Учитывает переход: лог и оба счётчика. Переходы ботов ничего не меняют."""

        with self.storage.lock:
            records, broken = self._load()
            record = records.get(code)
            if record is None:
                raise NotFound()
            if is_bot:
                return record
            apply_visit(record, visitor_ip, now or datetime.now(timezone.utc))
            self._save(records, broken)
        return record

    def resolve(self, code: str, client_ip: str, user_agent: str | None) -> str:
        record = self.record_visit(code, client_ip, self.bot_classifier.is_bot(user_agent))
        return redirect_target(record.long_url)

    def delete(self, code: str, requester_id: str | None, is_admin: bool = False) -> None:
        with self.storage.lock:
            records, broken = self._load()
            record = records.get(code)
            if record is None:
                raise NotFound()
            check_owner(record, requester_id, is_admin)
            del records[code]
            self._save(records, broken)

    def delete_all(self, requester_id: str | None, is_admin: bool = False) -> int:
        with self.storage.lock:
            records, broken = self._load()
            if is_admin:
                kept, kept_broken = {}, {}
            else:
                kept = {c: r for c, r in records.items() if requester_id is None or r.user_id != requester_id}
                kept_broken = broken
            deleted = len(records) - len(kept)
            if deleted or len(kept_broken) != len(broken):
                self._save(kept, kept_broken)
        return deleted

    def reset_today(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        with self.storage.lock:
            records, broken = self._load()
            for record in records.values():
                record.today_visits = 0
                record.last_reset = now
            self._save(records, broken)
        logger.info("Дневные счётчики обнулены: %d ссылок", len(records))
        return len(records)

    def snapshot(self, directory: str, keep: int, now: datetime | None = None) -> str | None:
        """Сохраняет копию документа в directory и удаляет копии старше последних keep."""

        path = self.storage.snapshot(directory, now)
        if path is None:
            return None
        stem = os.path.splitext(os.path.basename(self.storage.path))[0]
        snapshots = sorted(glob.glob(os.path.join(directory, f"{stem}-*.json")))
        for old in snapshots[:-keep] if keep > 0 else []:
            os.remove(old)
        logger.info("Резервная копия записана: %s", path)
        return path
