from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from shortener.api.auth import SessionUser, get_current_user, get_optional_user
from shortener.core.database import get_links
from shortener.services.links import LinkStore, check_owner

router = APIRouter()


class LinkCreate(BaseModel):
    """
    Схема для создания новой сокращённой ссылки.

    Атрибуты:
        url (str): Исходный URL. Схема не обязательна, при редиректе подставляется https://.
    """

    url: str | None = None


class LinkCreated(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
    short_url: str
    short_code: str


class MemoUpdate(BaseModel):
    memo: str = ""


class LinkOut(BaseModel):
    """
    Класс для вывода строки дашборда.

    Атрибуты:
        short_code (str): Короткий код.
        short_url (str): Полный короткий URL.
        long_url (str): Исходный URL.
        created_at (datetime): Дата и время создания ссылки.
        today_visits (int): Переходы за сегодня.
        total_visits (int): Переходы за всё время.
        user_id (str | None): Владелец ссылки.
        username (str): Имя владельца на момент создания.
        memo (str): Заметка.

    model_config:
        Поля отдаются в camelCase; объект строится из LinkRecord.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
    short_code: str
    short_url: str
    long_url: str
    created_at: datetime
    today_visits: int
    total_visits: int
    user_id: str | None = None
    username: str
    memo: str = ""


def get_client_ip(request: Request) -> str:
    ip = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip") \
        or (request.client.host if request.client else "")
    ip = ip.split(",")[0].strip()
    if ip.startswith("::ffff:"):
        ip = ip[len("::ffff:"):]
    return ip


@router.post("/shorten", response_model=LinkCreated, response_model_by_alias=True)
def create_link(link_in: LinkCreate, request: Request, links: LinkStore = Depends(get_links),
                current_user: SessionUser | None = Depends(get_optional_user)):
    """
    Создает новую сокращённую ссылку.

    Args:
        link_in (LinkCreate): Данные для создания ссылки.
        request (Request): HTTP-запрос, из которого берётся IP клиента.
        links (LinkStore): Хранилище ссылок.
        current_user (SessionUser | None): Пользователь сессии; гости тоже могут создавать ссылки.

    Returns:
        LinkCreated: shortUrl и shortCode новой ссылки.

    - Если url не передан или пустой, возвращается HTTP 400.
    """

    link = links.create(
        link_in.url or "",
        get_client_ip(request),
        owner_id=current_user.id if current_user else None,
        owner_username=current_user.username if current_user else None,
    )
    return LinkCreated(short_url=link.short_url, short_code=link.short_code)


@router.get("/urls", response_model=list[LinkOut], response_model_by_alias=True)
def list_links(links: LinkStore = Depends(get_links), current_user: SessionUser = Depends(get_current_user)):
    """
    Получает список ссылок, новые первыми.

    Администратор видит все ссылки, остальные пользователи только свои.
    """

    return links.list(owner_id=current_user.id, is_admin=current_user.is_admin)


@router.get("/urls/{short_code}/details", response_model=dict)
def get_link_details(short_code: str, links: LinkStore = Depends(get_links),
                     current_user: SessionUser = Depends(get_current_user)):
    """
    Подробности ссылки: счётчики, дневной лимит, последние переходы и заметка.

    - HTTP 404, если ссылки нет.
    - HTTP 403, если пользователь не владелец и не администратор.
    """

    check_owner(links.get(short_code), current_user.id, current_user.is_admin)
    return links.details(short_code)


@router.put("/urls/{short_code}", response_model=dict)
def update_memo(short_code: str, memo_in: MemoUpdate, links: LinkStore = Depends(get_links),
                current_user: SessionUser = Depends(get_current_user)):
    check_owner(links.get(short_code), current_user.id, current_user.is_admin)
    links.update_memo(short_code, memo_in.memo)
    return {"message": "Заметка сохранена"}


@router.delete("/urls/{short_code}", status_code=204)
def delete_link(short_code: str, links: LinkStore = Depends(get_links),
                current_user: SessionUser = Depends(get_current_user)):
    """
    Удаляет сокращённую ссылку.

    - HTTP 404, если ссылки нет.
    - HTTP 403, если пользователь не владелец и не администратор.
    """

    links.delete(short_code, current_user.id, current_user.is_admin)
    return


@router.delete("/delete-all", response_model=dict)
def delete_all_links(links: LinkStore = Depends(get_links), current_user: SessionUser = Depends(get_current_user)):
    deleted = links.delete_all(current_user.id, current_user.is_admin)
    return {"message": "Ссылки удалены", "deleted": deleted}


@router.get("/{short_code}")
def public_redirect(short_code: str, request: Request, links: LinkStore = Depends(get_links)):
    """
    Публичный редирект по короткому коду.

    Returns:
        RedirectResponse: Перенаправление на исходный URL с HTTP статусом 302. Переход учитывается,
        если User-Agent не похож на бота.
    """

    target = links.resolve(short_code, get_client_ip(request), request.headers.get("user-agent"))
    return RedirectResponse(url=target, status_code=302)
