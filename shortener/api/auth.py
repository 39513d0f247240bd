import secrets
from datetime import datetime

import redis
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from shortener.core.config import ADMIN_KEY, REDIS_URL, SESSION_TTL
from shortener.core.database import get_users
from shortener.core.errors import NotFound
from shortener.services.users import UserStore

router = APIRouter()

redis_client = redis.Redis.from_url(REDIS_URL, decode_responses=True)
SESSION_COOKIE = "session_id"


class UserCreate(BaseModel):
    """
    Класс для создания нового пользователя администратором.

    Атрибуты:
        username (str): Имя пользователя (обязательное поле, должно быть уникальным).
        password (str): Пароль пользователя (обязательное поле, минимум 6 символов).
        email (EmailStr | None): Адрес электронной почты пользователя (необязательное поле).
        is_admin (bool): Выдать ли права администратора.
    """

    model_config = ConfigDict(populate_by_name=True)
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
    email: EmailStr | None = None
    is_admin: bool = Field(False, alias="isAdmin")


class UserOut(BaseModel):
    """
    Класс для вывода информации о пользователе.

    Атрибуты:
        id (str): Уникальный идентификатор пользователя.
        username (str): Имя пользователя.
        email (str | None): Электронная почта пользователя, если указана.
        is_admin (bool): Признак администратора.
        created_at (datetime | None): Дата и время создания пользователя.

    model_config:
       Поля отдаются в camelCase, passwordHash наружу не попадает.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)
    id: str
    username: str
    email: str | None = None
    is_admin: bool = False
    created_at: datetime | None = None


class UserLogin(BaseModel):
    username: str
    password: str


class SessionUser(BaseModel):
    """Пользователь текущего запроса."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
    id: str
    username: str
    is_admin: bool = False


ADMIN_KEY_USER = SessionUser(id="admin-key", username="admin", is_admin=True)


def create_session_token(user_id: str) -> str:
    token = secrets.token_urlsafe(32)
    redis_client.setex(f"session:{token}", SESSION_TTL, user_id)
    return token


def get_optional_user(request: Request, users: UserStore = Depends(get_users)) -> SessionUser | None:
    """
    Пользователь из сессии или по ключу администратора; None для гостя.

    Args:
        request (Request): HTTP-запрос с cookie session_id или заголовком X-Admin-Key.
        users (UserStore): Хранилище пользователей.

    Returns:
        SessionUser | None: Текущий пользователь либо None.
    """

    admin_key = request.headers.get("x-admin-key", "")
    if ADMIN_KEY and secrets.compare_digest(admin_key.encode(), ADMIN_KEY.encode()):
        return ADMIN_KEY_USER
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    user_id = redis_client.get(f"session:{token}")
    if not user_id:
        return None
    try:
        user = users.get(user_id)
    except NotFound:
        return None
    return SessionUser(id=user.id, username=user.username, is_admin=user.is_admin)


def get_current_user(user: SessionUser | None = Depends(get_optional_user)) -> SessionUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Не авторизован")
    return user


def get_admin_user(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Требуются права администратора")
    return user


@router.post("/login", response_model=dict)
def login(user_in: UserLogin, users: UserStore = Depends(get_users)):
    """
    Логин пользователя.

    Args:
        user_in (UserLogin): Данные для входа, включающие имя пользователя и пароль.
        users (UserStore): Хранилище пользователей.

    Returns:
        dict: Сообщение об успешном входе и данные пользователя. Также устанавливается cookie "session_id" с временем жизни SESSION_TTL.

    - Если пользователь не найден или пароль неверный, генерируется исключение HTTP 401.
    """

    user = users.authenticate(user_in.username, user_in.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Неверные учетные данные")

    token = create_session_token(user.id)
    resp = JSONResponse({
        "message": "Успешный вход",
        "user": {"id": user.id, "username": user.username, "isAdmin": user.is_admin},
    })
    resp.set_cookie(key=SESSION_COOKIE, value=token, httponly=True, max_age=SESSION_TTL, samesite="lax")

    return resp


@router.post("/logout", response_model=dict)
def logout(request: Request):
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        redis_client.delete(f"session:{token}")
    resp = JSONResponse({"message": "Выход выполнен"})
    resp.delete_cookie(SESSION_COOKIE)
    return resp


@router.get("/me", response_model=SessionUser)
def me(current_user: SessionUser = Depends(get_current_user)):
    return current_user


@router.get("/users", response_model=list[UserOut])
def list_users(users: UserStore = Depends(get_users), admin: SessionUser = Depends(get_admin_user)):
    return users.list()


@router.post("/users", response_model=UserOut, status_code=201)
def create_user(user_in: UserCreate, users: UserStore = Depends(get_users),
                admin: SessionUser = Depends(get_admin_user)):
    """
    Создание пользователя администратором.

    - Если имя пользователя уже занято, возвращается HTTP 400.
    - Пароль сохраняется только в виде bcrypt-хэша.
    """

    return users.create(user_in.username, user_in.password, user_in.email, user_in.is_admin)


@router.delete("/users/{user_id}", response_model=dict)
def delete_user(user_id: str, users: UserStore = Depends(get_users), admin: SessionUser = Depends(get_admin_user)):
    users.delete(user_id)
    return {"message": "Пользователь удален"}
