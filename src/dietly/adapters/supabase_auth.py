"""Bearer token verification through Supabase Auth."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from supabase import AuthApiError, AuthRetryableError, Client

from dietly.domain.errors import PersistenceError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller as reported by the identity provider."""

    user_id: UUID
    email: str
    name: str


class TokenVerifier(Protocol):
    """Interface for resolving access tokens to identities."""

    def verify(self, token: str) -> Identity | None:
        """Return the identity for a valid token, None otherwise."""


@dataclass
class SupabaseTokenVerifier:
    """Token verifier backed by ``client.auth.get_user``."""

    client: Client

    def verify(self, token: str) -> Identity | None:
        """Resolve an access token issued by Supabase Auth."""
        try:
            response = self.client.auth.get_user(token)
        except AuthRetryableError as exc:
            _logger.exception("Supabase Auth unreachable")
            raise PersistenceError("Failed to verify access token") from exc
        except AuthApiError as exc:
            if exc.status >= 500:
                _logger.exception("Supabase Auth failed")
                raise PersistenceError("Failed to verify access token") from exc
            _logger.info("Rejected access token: %s", exc.message)
            return None
        user = response.user if response else None
        if user is None:
            return None
        metadata = user.user_metadata or {}
        email = user.email or ""
        return Identity(
            user_id=UUID(str(user.id)),
            email=email,
            name=str(metadata.get("name") or email.split("@")[0]),
        )
