from shortener.core.config import BASE_URL, DB_FILE, USERS_FILE
from shortener.core.storage import AtomicFileStore
from shortener.services.links import LinkStore
from shortener.services.users import UserStore

link_store = LinkStore(AtomicFileStore(DB_FILE), BASE_URL)
user_store = UserStore(AtomicFileStore(USERS_FILE))


def get_links() -> LinkStore:
    return link_store


def get_users() -> UserStore:
    return user_store
