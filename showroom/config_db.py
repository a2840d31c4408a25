import os
from urllib.parse import quote_plus
from typing import Optional

from dotenv import load_dotenv, dotenv_values

_ENV_LOADED = False
_DOTENV_VALUES = {}


def load_env_once(dotenv_path: Optional[str] = None) -> None:
    """
    Load .env sekali saja dan simpan nilai mentah dari file .env di _DOTENV_VALUES.
    """
    global _ENV_LOADED, _DOTENV_VALUES
    if _ENV_LOADED:
        return
    path = dotenv_path or os.path.join(os.getcwd(), ".env")
    load_dotenv(path)
    _DOTENV_VALUES = dotenv_values(path)
    _ENV_LOADED = True


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    # ENV menang atas isi .env
    return os.environ.get(key) or _DOTENV_VALUES.get(key) or default


def _first_nonempty(*vals: Optional[str]) -> Optional[str]:
    for v in vals:
        if v and v.strip():
            return v.strip()
    return None


def _normalize_pg(url: Optional[str]) -> Optional[str]:
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _mysql_from_parts() -> Optional[str]:
    """
    DSN MySQL dari MYSQL_USER, MYSQL_PASSWORD, MYSQL_HOST, MYSQL_PORT,
    MYSQL_DATABASE dan MYSQL_CHARSET. None jika user/database kosong.
    """
    user = _first_nonempty(_env("MYSQL_USER"), _env("MYSQL_USERNAME"))
    database = _first_nonempty(_env("MYSQL_DB"), _env("MYSQL_DATABASE"))
    if not (user and database):
        return None

    pwd = quote_plus(_env("MYSQL_PASSWORD", "") or "")
    host = _env("MYSQL_HOST", "127.0.0.1")
    port = _env("MYSQL_PORT", "3306")
    charset = _env("MYSQL_CHARSET", "utf8mb4")
    return f"mysql+pymysql://{user}:{pwd}@{host}:{port}/{database}?charset={charset}"


def resolve_database_uri() -> str:
    """
    Urutan:
      1) SQLALCHEMY_DATABASE_URI (ENV lalu .env)
      2) DATABASE_URL (ENV lalu .env)
      3) Rakit dari MYSQL_*
      4) sqlite:///instance/showroom.db
    """
    url = _first_nonempty(
        os.environ.get("SQLALCHEMY_DATABASE_URI"),
        _DOTENV_VALUES.get("SQLALCHEMY_DATABASE_URI"),
        os.environ.get("DATABASE_URL"),
        _DOTENV_VALUES.get("DATABASE_URL"),
    )
    if url:
        return _normalize_pg(url)

    url = _mysql_from_parts()
    if url:
        return url

    inst = os.path.abspath(os.path.join(os.getcwd(), "instance"))
    os.makedirs(inst, exist_ok=True)
    return f"sqlite:///{os.path.join(inst, 'showroom.db')}"


def resolve_secret_key() -> str:
    return _first_nonempty(_env("SECRET_KEY"), "dev-secret-key")  # jangan pakai di production


def resolve_log_level() -> str:
    return (_env("LOG_LEVEL", "INFO") or "INFO").upper()
