import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from app.config import ConfigurationError, Settings

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"  # noqa: S105


@dataclass(frozen=True)
class ServiceAccountCredentials:
    client_email: str
    private_key: str = field(repr=False)
    token_uri: str = GOOGLE_TOKEN_URI


def load_credentials(settings: Settings) -> ServiceAccountCredentials:
    """
    Load Google service-account credentials.
    The key file wins when it exists; otherwise GOOGLE_CLIENT_EMAIL and
    GOOGLE_PRIVATE_KEY are used, with literal "\\n" sequences unescaped.
    Raises ConfigurationError if neither source yields both values.
    """
    key_path = Path(settings.service_account_file)
    if key_path.is_file():
        logger.info("Using service account key file %s", key_path)
        try:
            key_file = json.loads(key_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            error_message = f"Unreadable service account key file {key_path}: {exc}"
            raise ConfigurationError(error_message) from exc
        client_email = key_file.get("client_email")
        private_key = key_file.get("private_key")
        token_uri = key_file.get("token_uri") or GOOGLE_TOKEN_URI
    else:
        logger.info("Using service account credentials from environment variables")
        client_email = settings.client_email
        private_key = settings.private_key
        if private_key:
            private_key = private_key.replace("\\n", "\n")
        token_uri = GOOGLE_TOKEN_URI

    if not client_email or not private_key:
        error_message = (
            "Missing Google credentials. Check GOOGLE_CLIENT_EMAIL and "
            "GOOGLE_PRIVATE_KEY"
        )
        raise ConfigurationError(error_message)
    return ServiceAccountCredentials(
        client_email=client_email,
        private_key=private_key,
        token_uri=token_uri,
    )
