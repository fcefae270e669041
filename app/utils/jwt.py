"""
JWT utility functions for the service-account OAuth grant.
"""

from datetime import UTC, datetime, timedelta

import jwt

from app.utils.credentials import ServiceAccountCredentials

ALGORITHM = "RS256"
ASSERTION_LIFETIME_MINUTES = 60
DRIVE_READONLY_SCOPE = "https://www.googleapis.com/auth/drive.readonly"


def create_assertion(
    credentials: ServiceAccountCredentials,
    scope: str = DRIVE_READONLY_SCOPE,
    now: datetime | None = None,
) -> str:
    """
    Sign the JWT-bearer assertion exchanged at the token endpoint for an
    access token.
    """
    issued_at = now or datetime.now(UTC)
    claims = {
        "iss": credentials.client_email,
        "scope": scope,
        "aud": credentials.token_uri,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=ASSERTION_LIFETIME_MINUTES),
    }
    # PyJWT handles datetime conversion for iat/exp
    return jwt.encode(claims, credentials.private_key, algorithm=ALGORITHM)
