"""Process configuration, read once from the environment."""
import json
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./hrtrain.db")

# Fix for Render/Heroku: they use postgres:// but SQLAlchemy needs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

SEED_DEFAULTS = os.getenv("HRTRAIN_SEED_DEFAULTS", "true").strip().lower() in ("1", "true", "yes")

TAXONOMY_FILE = os.getenv("HRTRAIN_TAXONOMY_FILE")

# Seconds an idle import session is kept before it expires
IMPORT_SESSION_TTL = int(os.getenv("HRTRAIN_IMPORT_SESSION_TTL", "3600"))


def load_taxonomy_override():
    """Return the company -> departments mapping from HRTRAIN_TAXONOMY_FILE, or None."""
    if not TAXONOMY_FILE:
        return None
    with open(TAXONOMY_FILE, "r", encoding="utf-8") as f:
        data = json.load(f)
    return {str(company): [str(d) for d in depts] for company, depts in data.items()}
