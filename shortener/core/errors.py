class ShortenerError(Exception):
    """
    Базовая ошибка сервиса.

    Атрибуты:
        status_code (int): HTTP-статус, с которым ошибка отдаётся клиенту.
        detail (str): Сообщение для клиента.
    """

    status_code = 500
    default_detail = "Внутренняя ошибка"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(ShortenerError):
    status_code = 400
    default_detail = "Некорректные данные"


class Forbidden(ShortenerError):
    status_code = 403
    default_detail = "Недостаточно прав"


class NotFound(ShortenerError):
    status_code = 404
    default_detail = "Ссылка не найдена"


class PersistenceError(ShortenerError):
    status_code = 500
    default_detail = "Не удалось сохранить данные"
