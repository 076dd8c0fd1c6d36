import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from formguard.csrf.errors import ConfigurationError
from formguard.csrf.signing import resolve_algorithm
from formguard.csrf.tokens import ensure_strong_random

DEFAULT_SECRET_KEY = "formguard-secret-key"


def _load_env_file() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


_load_env_file()


def _as_bool(value: str, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_name: str
    environment: str
    database_url: str
    secret_key: str
    session_https_only: bool
    session_same_site: str
    auto_run_migrations: bool
    log_level: str
    request_id_header: str
    default_language: str
    csrf_hash_algorithm: str
    csrf_cookie_secret: str
    csrf_cookie_path: str
    csrf_cookie_name: str
    csrf_field_name: str


@lru_cache
def get_settings() -> Settings:
    environment = os.getenv("ENVIRONMENT", "development")
    session_https_default = environment == "production"
    session_same_site_default = "strict" if environment == "production" else "lax"
    secret_key = os.getenv("FORMGUARD_SECRET_KEY", DEFAULT_SECRET_KEY)

    return Settings(
        app_name=os.getenv("APP_NAME", "Formguard"),
        environment=environment,
        database_url=os.getenv("DATABASE_URL", "sqlite:///./formguard.db"),
        secret_key=secret_key,
        session_https_only=_as_bool(
            os.getenv("SESSION_HTTPS_ONLY"),
            default=session_https_default,
        ),
        session_same_site=os.getenv("SESSION_SAMESITE", session_same_site_default).strip().lower(),
        auto_run_migrations=_as_bool(
            os.getenv("AUTO_RUN_MIGRATIONS"),
            default=environment != "production",
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        request_id_header=os.getenv("REQUEST_ID_HEADER", "X-Request-ID"),
        default_language=os.getenv("DEFAULT_LANGUAGE", "en").strip().lower(),
        csrf_hash_algorithm=os.getenv("CSRF_HASH_ALGORITHM", "sha256").strip().lower(),
        # The fallback cookie is signed with the session key unless told otherwise.
        csrf_cookie_secret=os.getenv("CSRF_COOKIE_SECRET") or secret_key,
        csrf_cookie_path=os.getenv("CSRF_COOKIE_PATH", "/"),
        csrf_cookie_name=os.getenv("CSRF_COOKIE_NAME", "FORMGUARD_CSRF"),
        csrf_field_name=os.getenv("CSRF_FIELD_NAME", "csrf_token"),
    )


def validate_runtime_configuration(settings: Settings) -> None:
    ensure_strong_random()
    resolve_algorithm(settings.csrf_hash_algorithm)

    if not settings.csrf_cookie_secret:
        raise ConfigurationError("CSRF_COOKIE_SECRET must not be empty.")

    if settings.environment == "production":
        defaults = []
        if settings.secret_key == DEFAULT_SECRET_KEY:
            defaults.append("FORMGUARD_SECRET_KEY")
        if settings.csrf_cookie_secret == DEFAULT_SECRET_KEY:
            defaults.append("CSRF_COOKIE_SECRET")
        if defaults:
            raise ConfigurationError(
                "Default secrets are not allowed in production: " + ", ".join(defaults)
            )
