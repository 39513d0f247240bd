import os

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = os.getenv("DATA_DIR", "./data")
DB_FILE = os.path.join(DATA_DIR, "db.json")
USERS_FILE = os.path.join(DATA_DIR, "users.json")
BACKUPS_DIR = os.path.join(DATA_DIR, "backups")

BASE_URL = os.getenv("BASE_URL", "http://localhost:8000")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
SESSION_TTL = int(os.getenv("SESSION_TTL", 86400))

ADMIN_KEY = os.getenv("ADMIN_KEY")
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

RESET_TIMEZONE = os.getenv("RESET_TIMEZONE", "Asia/Seoul")
RESET_HOUR = int(os.getenv("RESET_HOUR", 0))
RESET_MINUTE = int(os.getenv("RESET_MINUTE", 0))
BACKUP_KEEP = int(os.getenv("BACKUP_KEEP", 14))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
