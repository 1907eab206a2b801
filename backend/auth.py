"""HTTP Basic authentication over every route, when configured."""

import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from config import AppConfig
from deps import get_config

security = HTTPBasic(auto_error=False)


def _matches(given: str, expected: str) -> bool:
    return secrets.compare_digest(given.encode(), expected.encode())


def is_authorized(config: AppConfig, credentials: HTTPBasicCredentials | None) -> bool:
    """Check credentials against the configured user.

    Without a configured username everyone is allowed; without a configured
    password any password is accepted for that username.
    """
    if not config.auth_username:
        return True
    if credentials is None:
        return False
    if not _matches(credentials.username, config.auth_username):
        return False
    if config.auth_password is None:
        return True
    return _matches(credentials.password, config.auth_password)


def require_auth(
    request: Request,
    credentials: HTTPBasicCredentials | None = Depends(security),
) -> None:
    if not is_authorized(get_config(request), credentials):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Basic"},
        )
