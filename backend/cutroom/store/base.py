"""
Data store contract.

The access layer talks to the backend service only through this interface:
session handling, generic table reads/writes and object storage. Two
implementations exist, chosen when the application is composed:

- SqlDataStore: relational database + local object storage
- MemoryDataStore: in-process dictionaries, for local demos and tests

Implementations report every failure as StoreError; raw driver, ORM or
filesystem exceptions never cross this boundary.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Tables reachable through select/insert/update
TABLES = frozenset({"profiles", "projects", "project_files", "comments"})

# StoreError codes
UNDEFINED_TABLE = "undefined_table"
UNIQUE_VIOLATION = "unique_violation"
INVALID_CREDENTIALS = "invalid_credentials"
EMAIL_NOT_CONFIRMED = "email_not_confirmed"
USER_EXISTS = "user_exists"
INVALID_TOKEN = "invalid_token"
OBJECT_NOT_FOUND = "not_found"
STORAGE_ERROR = "storage_error"
OTHER = "other"


class StoreError(Exception):
    """Failure reported by a data store, tagged with a stable code."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"StoreError(code={self.code!r}, message={self.message!r})"


@dataclass
class StoreUser:
    """Authenticated identity as seen by the store's auth service."""

    id: str
    email: str
    user_metadata: Dict[str, Any] = field(default_factory=dict)
    email_confirmed: bool = False


@dataclass
class StoreSession:
    access_token: str
    user: StoreUser


class DataStore(ABC):
    """Backend service used by the access layer."""

    # --- Sessions ---

    @abstractmethod
    async def get_session(self, access_token: str) -> Optional[StoreSession]:
        """Return the live session for ``access_token``, or None."""

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> StoreSession:
        """
        Start a session.

        Raises:
            StoreError: ``invalid_credentials`` or ``email_not_confirmed``
        """

    @abstractmethod
    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Dict[str, Any],
        redirect_url: str,
    ) -> tuple[StoreUser, Optional[StoreSession]]:
        """
        Register an identity.

        Returns the new identity and, unless email confirmation is required,
        a session for it.

        Raises:
            StoreError: ``user_exists`` if the email is taken
        """

    @abstractmethod
    async def resend_confirmation(self, email: str, redirect_url: str) -> None:
        """Send the sign-up confirmation link again (no-op for unknown emails)."""

    @abstractmethod
    async def reset_password(self, email: str, redirect_url: str) -> None:
        """Send a password reset link (no-op for unknown emails)."""

    @abstractmethod
    async def confirm_email(self, token: str) -> StoreUser:
        """Confirm an email address. Raises StoreError ``invalid_token``."""

    @abstractmethod
    async def update_password(self, token: str, new_password: str) -> StoreUser:
        """Set a new password from a reset token. Raises StoreError ``invalid_token``."""

    @abstractmethod
    async def sign_out(self, access_token: str) -> None:
        """End the session; unknown tokens are ignored."""

    # --- Tables ---

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Return rows of ``table`` matching every filter.

        A filter value that is a list, tuple, set or frozenset matches any of
        its members; None matches NULL.
        """

    @abstractmethod
    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a row and return it with generated columns filled in.

        Raises:
            StoreError: ``unique_violation`` on a duplicate key
        """

    @abstractmethod
    async def update(
        self,
        table: str,
        row_id: str,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Apply ``patch`` to the row with ``row_id`` if it still holds every
        ``expected`` value, atomically.

        Returns the updated row, or None when the row is absent or a
        precondition did not hold.
        """

    # --- Object storage ---

    @abstractmethod
    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        """Store an object. Raises StoreError ``storage_error``."""

    @abstractmethod
    async def download(self, bucket: str, path: str) -> bytes:
        """Read an object. Raises StoreError ``not_found``."""

    @abstractmethod
    async def create_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        """Return a URL granting read access to an object for ``ttl_seconds``."""

    # --- Lifecycle ---

    async def prepare(self) -> None:
        """Get the store ready to serve: create its schema or load seed data, as configured."""

    async def check_health(self) -> None:
        """Raise StoreError if the store cannot serve requests."""

    async def close(self) -> None:
        """Release connections held by the store."""


def build_email_link(redirect_url: str, action: str, token: str) -> str:
    """Link sent by email; the front end at ``redirect_url`` posts the token back."""
    return f"{redirect_url.rstrip('/')}/auth/{action}?token={token}"


def matches_filter(value: Any, expected: Any) -> bool:
    """Filter semantics shared by the stores: collections mean "in"."""
    if isinstance(expected, (list, tuple, set, frozenset)):
        return value in expected
    return value == expected
