import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
DB_PATH = Path(os.getenv("MEDSOS_DB_PATH", str(BASE_DIR / "medsos.db")))
AUDIT_LOG_LIMIT = int(os.getenv("AUDIT_LOG_LIMIT", "300"))
EXPORT_LIMIT = int(os.getenv("EXPORT_LIMIT", "100"))
DASHBOARD_LIMIT = int(os.getenv("DASHBOARD_LIMIT", "5"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
