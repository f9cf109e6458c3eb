import os
from pathlib import Path

from dotenv import load_dotenv

APP_DIR = Path(__file__).resolve().parent
BACKEND_DIR = APP_DIR.parent
WORKSPACE_DIR = BACKEND_DIR.parent

load_dotenv()

DATA_DIR = Path(os.environ.get("INVENTORY_DATA_DIR", str(APP_DIR / "data")))
DB_PATH = Path(os.environ.get("INVENTORY_DB_PATH", str(DATA_DIR / "db.json")))
PUBLIC_DIR = Path(os.environ.get("INVENTORY_PUBLIC_DIR", str(WORKSPACE_DIR / "public")))

# "fail" refuses to start on an unreadable db file, "reset" moves it aside.
ON_CORRUPT = os.environ.get("INVENTORY_ON_CORRUPT", "fail").strip().lower()
REFRESH_ON_READ = os.environ.get("INVENTORY_REFRESH_ON_READ", "true").strip().lower() not in {
    "0",
    "false",
    "no",
    "off",
}

HOST = os.environ.get("INVENTORY_HOST", "0.0.0.0")
PORT = int(os.environ.get("INVENTORY_PORT", "3000"))
LOG_LEVEL = os.environ.get("INVENTORY_LOG_LEVEL", "INFO").upper()
