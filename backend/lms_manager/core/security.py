from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from lms_manager.core.config import settings
from lms_manager.core.game_config import ROLE_GAME_ADMIN
from lms_manager.core.scope import ManagerScope
from lms_manager.db.session import get_db  # noqa: F401  (re-export for routers)


def create_access_token(data: dict) -> str:
    to_encode = data.copy()

    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRE_MIN)
    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALG,
    )
    return encoded_jwt


bearer_scheme = HTTPBearer(auto_error=False)


def get_current_manager(
    creds: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    impersonate: Optional[str] = Query(default=None),
) -> ManagerScope:
    if creds is None or creds.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Not authenticated")

    token = creds.credentials

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
        )
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")

    email = payload.get("sub")
    if not isinstance(email, str) or not email.strip():
        raise HTTPException(status_code=401, detail="Invalid token")

    # Admins can act on another manager's data
    if impersonate is not None:
        roles = payload.get("roles")
        if not isinstance(roles, list) or ROLE_GAME_ADMIN not in roles:
            raise HTTPException(status_code=403, detail="Impersonation requires game_admin role")
        try:
            return ManagerScope.of(impersonate)
        except ValueError:
            raise HTTPException(status_code=422, detail="impersonate must be a manager email")

    return ManagerScope.of(email)
