"""
Share tokens for persisted analyses.

A share link is only issued for a record that was persisted and only to a
signed-in user; both checks happen locally before the store is contacted.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from guardaio.core.exceptions import ShareRefusedError
from guardaio.database import get_history_store
from guardaio.guardaio_logging import get_logger

logger = get_logger(__name__)

SHARED_PATH = "/shared"
TOKEN_BYTES = 24


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str | None = None


class ShareTokenStore(Protocol):
    def assign_share_token(self, record_id: str, token: str, user_id: str | None = None) -> str | None: ...


def _default_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


class ShareService:
    """
    Issues share tokens and public share URLs.

    Args:
        store: Anything with assign_share_token (normally HistoryStore).
        origin: Public origin of the web app, e.g. https://guardaio.app.
        token_factory: Token generator; secrets.token_urlsafe by default.
    """

    def __init__(
        self,
        store: ShareTokenStore,
        origin: str,
        *,
        token_factory: Callable[[], str] = _default_token,
    ) -> None:
        self._store = store
        self._origin = origin.rstrip("/")
        self._token_factory = token_factory

    @classmethod
    def from_settings(cls, settings: Any, store: ShareTokenStore | None = None) -> "ShareService":
        """Service using Settings.share_origin; the process-wide history store unless given."""
        return cls(store if store is not None else get_history_store(), settings.share_origin)

    def issue_share_token(self, record_id: str | None, user: AuthenticatedUser | None) -> str | None:
        """
        Return the record's share token, creating one if needed.

        Raises ShareRefusedError when there is no record or no signed-in user.
        Returns None when the store cannot find the record or fails.
        """
        if not record_id:
            raise ShareRefusedError("Analysis was not saved; sign in to share results")
        if user is None or not user.id:
            raise ShareRefusedError("Sign in to share analysis results")
        try:
            token = self._store.assign_share_token(record_id, self._token_factory(), user.id)
        except Exception as e:
            logger.warning("share_token_failed", record_id=record_id, error=str(e))
            return None
        if token is None:
            logger.info("share_record_not_found", record_id=record_id)
            return None
        logger.info("share_token_issued", record_id=record_id)
        return token

    def share_url(self, record_id: str | None, user: AuthenticatedUser | None) -> str | None:
        token = self.issue_share_token(record_id, user)
        if token is None:
            return None
        return f"{self._origin}{SHARED_PATH}?token={token}"
