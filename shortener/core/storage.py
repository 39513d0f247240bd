import copy
import json
import logging
import os
import shutil
import threading
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


class AtomicFileStore:
    """
    JSON-документ на диске с атомарной записью.

    Запись идёт во временный файл рядом с целевым, временный файл читается
    обратно для проверки, затем переименовывается поверх целевого. Перед записью
    текущая версия копируется в .bak и восстанавливается при любой ошибке.

    Атрибуты:
        path (str): Путь к документу.
        lock (threading.RLock): Блокировка для последовательностей чтение-изменение-запись.
    """

    def __init__(self, path: str):
        self.path = path
        self.lock = threading.RLock()

    @property
    def temp_path(self) -> str:
        return self.path + ".tmp"

    @property
    def backup_path(self) -> str:
        return self.path + ".bak"

    def load(self, fallback):
        """
        Читает документ.

        Args:
            fallback: Значение, возвращаемое (в виде копии), если файла нет или он повреждён.

        Returns:
            Разобранный документ или копия fallback. Исключения наружу не пробрасываются.
        """

        if not os.path.exists(self.path):
            return copy.deepcopy(fallback)
        try:
            with open(self.path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError):
            logger.exception("Не удалось прочитать %s, используется значение по умолчанию", self.path)
            return copy.deepcopy(fallback)

    def save(self, document) -> bool:
        """
        Атомарно записывает документ.

        Returns:
            bool: True, если документ записан; False, если запись откатилась к прежней версии.
        """

        backed_up = False
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            if os.path.exists(self.path):
                shutil.copyfile(self.path, self.backup_path)
                backed_up = True

            with open(self.temp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            # контроль: временный файл должен разбираться обратно
            with open(self.temp_path, encoding="utf-8") as f:
                json.load(f)

            os.replace(self.temp_path, self.path)
            if backed_up:
                os.remove(self.backup_path)
            return True
        except (OSError, TypeError, ValueError):
            logger.exception("Не удалось записать %s", self.path)
            if os.path.exists(self.temp_path):
                os.remove(self.temp_path)
            if backed_up and os.path.exists(self.backup_path):
                os.replace(self.backup_path, self.path)
            return False

    def snapshot(self, directory: str, now: datetime | None = None) -> str | None:
        """Копирует текущий документ в directory под именем с отметкой времени."""

        if not os.path.exists(self.path):
            return None
        now = now or datetime.now(timezone.utc)
        os.makedirs(directory, exist_ok=True)
        stem = os.path.splitext(os.path.basename(self.path))[0]
        target = os.path.join(directory, f"{stem}-{now:%Y%m%d-%H%M%S}.json")
        with self.lock:
            shutil.copyfile(self.path, target)
        return target
