import os
import sys
import os.path
import tempfile

# Добавляем папку с пакетом shortener (корень проекта) в sys.path
root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if root_dir not in sys.path:
    sys.path.insert(0, root_dir)

# Устанавливаем переменные окружения для тестовой среды
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="shortener-test-")
os.environ["REDIS_URL"] = "redis://dummy:6379/0"  # dummy адрес для Redis
os.environ["ADMIN_KEY"] = "test-admin-key"

import httpx
import pytest
import pytest_asyncio
from passlib.context import CryptContext

from shortener.app import app
from shortener.api import auth as auth_api
from shortener.services import users as users_service
from shortener.core.database import get_links, get_users
from shortener.core.storage import AtomicFileStore
from shortener.services.links import LinkStore
from shortener.services.users import UserStore


class DummyRedis:
    def __init__(self, *args, **kwargs):
        self.data = {}

    def setex(self, key, ttl, value):
        self.data[key] = str(value)
        return True

    def get(self, key):
        return self.data.get(key)

    def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0


auth_api.redis_client = DummyRedis()

# Быстрый bcrypt для тестов
users_service.pwd_context = CryptContext(schemes=["bcrypt"], bcrypt__rounds=4)

BASE_URL = "http://sho.rt"


@pytest.fixture
def link_store(tmp_path):
    return LinkStore(AtomicFileStore(str(tmp_path / "db.json")), BASE_URL)


@pytest.fixture
def user_store(tmp_path):
    return UserStore(AtomicFileStore(str(tmp_path / "users.json")))


@pytest.fixture
def alice(user_store):
    return user_store.create("alice", "alice-password")


@pytest.fixture
def bob(user_store):
    return user_store.create("bob", "bob-password")


@pytest.fixture
def admin(user_store):
    return user_store.create("root", "root-password", is_admin=True)


@pytest.fixture
def session_for():
    def make(user) -> dict:
        token = auth_api.create_session_token(user.id)
        return {"Cookie": f"session_id={token}"}
    return make


@pytest_asyncio.fixture
async def async_client(link_store, user_store):
    app.dependency_overrides[get_links] = lambda: link_store
    app.dependency_overrides[get_users] = lambda: user_store
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
