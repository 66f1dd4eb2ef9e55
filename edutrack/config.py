import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# .env lives next to the package so the service starts the same from any cwd
load_dotenv(Path(__file__).with_name(".env"))

logger = logging.getLogger(__name__)


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


DATABASE_URL = (os.getenv("DATABASE_URL") or "").strip()

JWT_SECRET = os.getenv("JWT_SECRET", "").strip()
if not JWT_SECRET:
    JWT_SECRET = "edutrack-dev-secret-change-me-before-deploying"
    logger.warning("JWT_SECRET is not set, falling back to the development secret")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24 * 7)))

# Off: detail fetch and compose behave like the mobile backend always did.
# On: detail fetch is limited to the list scope and only teachers may compose.
STRICT_SCOPING = _flag("EDUTRACK_STRICT_SCOPING")

PUSH_MODE = os.getenv("EDUTRACK_PUSH_MODE", "log").strip().lower()

LOG_LEVEL = os.getenv("EDUTRACK_LOG_LEVEL", "INFO").strip().upper()
