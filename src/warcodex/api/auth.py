"""Identity of the caller as forwarded by the authenticating proxy.

The OAuth exchange happens upstream; requests reach the API with the
signed-in user's identity in ``X-Forwarded-*`` headers.  A request without
an email header is anonymous.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel

from warcodex.config import Settings

ANONYMOUS_USER = "anonymous"


class UserInfo(BaseModel):
    is_authenticated: bool = False
    user_name: str = ANONYMOUS_USER
    email: str | None = None
    is_admin: bool = False
    icon_url: str | None = None


def user_from_headers(headers: Mapping[str, str], settings: Settings) -> UserInfo:
    get = headers.get
    email = (get(settings.email_header) or "").strip()
    if not email:
        return UserInfo()
    user_name = (
        get(settings.preferred_username_header)
        or get(settings.user_header)
        or email.split("@", 1)[0]
    )
    return UserInfo(
        is_authenticated=True,
        user_name=user_name,
        email=email,
        is_admin=email.lower() in settings.admin_emails,
        icon_url=get(settings.picture_header) or None,
    )


def current_user(request: Request) -> UserInfo:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return user_from_headers(request.headers, state.settings)


CurrentUser = Annotated[UserInfo, Depends(current_user)]


def require_user(user: CurrentUser) -> UserInfo:
    if not user.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


AuthenticatedUser = Annotated[UserInfo, Depends(require_user)]


def require_admin(user: AuthenticatedUser) -> UserInfo:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user


AdminUser = Annotated[UserInfo, Depends(require_admin)]
