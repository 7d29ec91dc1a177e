"""Authentication dependencies for API routes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, Header, HTTPException, Request, status

from dietly.domain.models import UserProfile  # noqa: TC001

if TYPE_CHECKING:
    from dietly.containers import AppContainer

_BEARER = "bearer"


async def current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> UserProfile:
    """Resolve the bearer token to the caller's profile."""
    container: AppContainer = request.app.state.container
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized to access this route",
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != _BEARER or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized to access this route",
        )
    identity = container.token_verifier.verify(token.strip())
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return container.user_service.ensure_profile(
        identity.user_id, email=identity.email, name=identity.name
    )


async def require_admin(user: UserProfile = Depends(current_user)) -> UserProfile:
    """Ensure the caller has the admin role."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
