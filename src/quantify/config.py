import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dotenv import dotenv_values

from .logging import get_logger

log = get_logger("config")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5001
DEFAULT_MAX_UPLOAD_MB = 10
DEFAULT_FRONTEND_URL = "http://localhost:5173"


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    This makes running tools from subdirectories (e.g., `src/`) still find
    repository-level config files like `.env`.
    """
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Read the nearest .env without mutating the process environment."""
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    values = {k: v.strip() for k, v in dotenv_values(path).items() if v is not None}
    log.debug(f"Loaded {len(values)} key(s) from .env at {path}")
    return values


def _lookup(key: str, env: Dict[str, str]) -> Optional[str]:
    v = os.environ.get(key)
    if v and v.strip():
        return v.strip()
    v = env.get(key)
    return v if v else None


def _int_setting(key: str, env: Dict[str, str], default: int) -> int:
    raw = _lookup(key, env)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning(f"{key}={raw!r} is not an integer; using default {default}")
        return default


@dataclass
class Settings:
    db_root: Optional[str] = None
    tesseract_cmd: Optional[str] = None
    ocr_lang: str = "eng"
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024
    allow_origins: List[str] = field(default_factory=lambda: [DEFAULT_FRONTEND_URL])
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def load_settings(dotenv_dir: str) -> Settings:
    """Build Settings from the environment, falling back to the nearest .env.

    Environment variables always win over .env entries.
    """
    env = _read_dotenv(dotenv_dir)
    origins_raw = _lookup("FRONTEND_URL", env) or DEFAULT_FRONTEND_URL
    origins = [o.strip() for o in origins_raw.split(",") if o.strip()]
    settings = Settings(
        db_root=_lookup("QUANTIFY_ROOT", env),
        tesseract_cmd=_lookup("TESSERACT_CMD", env),
        ocr_lang=_lookup("OCR_LANG", env) or "eng",
        max_upload_bytes=_int_setting("MAX_UPLOAD_MB", env, DEFAULT_MAX_UPLOAD_MB) * 1024 * 1024,
        allow_origins=origins,
        host=_lookup("HOST", env) or DEFAULT_HOST,
        port=_int_setting("PORT", env, DEFAULT_PORT),
    )
    log.debug(f"Settings resolved: {settings}")
    return settings
