import os
from dataclasses import dataclass, field

DEFAULT_PORT = 5000
DEFAULT_POLL_INTERVAL = 10.0


class ConfigurationError(Exception):
    """Raised when a required setting is missing or malformed."""


@dataclass(frozen=True)
class Settings:
    folder_id: str
    base_url: str
    port: int = DEFAULT_PORT
    environment: str = "development"
    poll_interval: float = DEFAULT_POLL_INTERVAL
    storage_backend: str = "drive"
    photos_root: str = "."
    public_dir: str = "public"
    service_account_file: str = "service-account-key.json"
    client_email: str | None = field(default=None, repr=False)
    private_key: str | None = field(default=None, repr=False)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        error_message = f"{name} must be an integer, got {raw!r}"
        raise ConfigurationError(error_message) from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        error_message = f"{name} must be a number, got {raw!r}"
        raise ConfigurationError(error_message) from exc


def load_settings() -> Settings:
    """
    Build Settings from the environment.
    Raises ConfigurationError when the folder id is missing.
    Credentials are validated later by the Drive backend itself.
    """
    folder_id = os.getenv("GOOGLE_DRIVE_FOLDER_ID", "").strip()
    if not folder_id:
        error_message = "GOOGLE_DRIVE_FOLDER_ID not set in environment"
        raise ConfigurationError(error_message)
    port = _int_env("PORT", DEFAULT_PORT)
    base_url = os.getenv("RENDER_EXTERNAL_URL") or f"http://localhost:{port}"
    return Settings(
        folder_id=folder_id,
        base_url=base_url.rstrip("/"),
        port=port,
        environment=os.getenv("ENVIRONMENT", "development"),
        poll_interval=_float_env("POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL),
        storage_backend=os.getenv("STORAGE_BACKEND", "drive").lower(),
        photos_root=os.getenv("PHOTOS_ROOT", "."),
        public_dir=os.getenv("PUBLIC_DIR", "public"),
        service_account_file=os.getenv(
            "GOOGLE_SERVICE_ACCOUNT_FILE", "service-account-key.json"
        ),
        client_email=os.getenv("GOOGLE_CLIENT_EMAIL"),
        private_key=os.getenv("GOOGLE_PRIVATE_KEY"),
    )
