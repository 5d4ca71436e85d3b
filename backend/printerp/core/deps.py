"""
Request dependencies shared by the API routers.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from printerp.core.errors import Unauthorized
from printerp.core.security import read_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity taken from the bearer token subject."""
    id: str


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """Resolve the caller, raising Unauthorized when there is no valid session."""
    if credentials is None:
        raise Unauthorized()

    return CurrentUser(id=read_token(credentials.credentials))
