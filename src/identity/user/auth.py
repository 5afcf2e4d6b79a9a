"""Caller identity for HTTP routes.

Session issuance happens upstream; by the time a request reaches this service
the authentication layer has put the caller's id in ``X-User-Id``.
"""

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from identity.user.user import User, UserDirectory
from shared.api import get_session


def current_user(
    x_user_id: str = Header(default=""),
    session: Session = Depends(get_session),
) -> User:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="User not authenticated")
    user = UserDirectory(session).find(x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return user


def require_admin(user: User = Depends(current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
