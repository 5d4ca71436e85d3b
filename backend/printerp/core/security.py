"""
Bearer token handling.

The ledger keeps no user accounts. Tokens are issued by the PrintERP
application and signed with the shared ``SECRET_KEY``; only ``auth`` tokens
that name a subject are accepted.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Any
from jose import jwt, ExpiredSignatureError, JWTError
from .config import settings
from .errors import Unauthorized

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "auth"


def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    """Create a signed access token for ``subject``."""
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = {
        "exp": issued_at + lifetime,
        "sub": str(subject),
        "iat": issued_at,
        "type": ACCESS_TOKEN_TYPE,
    }
    if settings.TOKEN_ISSUER:
        claims["iss"] = settings.TOKEN_ISSUER
    if additional_claims:
        claims.update(additional_claims)

    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def read_token(token: str) -> str:
    """
    Validate a bearer token and return its subject.

    Raises:
        Unauthorized: expired, badly signed, wrong issuer, wrong type or
            no subject
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            issuer=settings.TOKEN_ISSUER,
        )
    except ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except JWTError as e:
        logger.debug(f"Rejected bearer token: {e}")
        raise Unauthorized("Invalid token")

    subject = payload.get("sub")
    if payload.get("type") != ACCESS_TOKEN_TYPE or not subject:
        raise Unauthorized("Invalid token")
    return subject


def verify_token(token: str) -> Optional[str]:
    """Return the subject of a valid token, or None."""
    try:
        return read_token(token)
    except Unauthorized:
        return None
