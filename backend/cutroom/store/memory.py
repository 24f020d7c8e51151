"""
In-memory data store for local demos and tests.

Mirrors the SQL store's contract without a network or database. No
operation awaits anything internally, so each one runs to completion
without yielding to the event loop; conditional updates are therefore
atomic without locks.
"""

import copy
import logging
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from cutroom.core.security import (
    PURPOSE_CONFIRM,
    PURPOSE_RESET,
    create_email_token,
    create_storage_token,
    hash_password,
    read_email_claims,
    read_email_token,
    reset_token_matches,
    verify_password,
)
from cutroom.core.storage import build_signed_url

from .base import (
    EMAIL_NOT_CONFIRMED,
    INVALID_CREDENTIALS,
    INVALID_TOKEN,
    OBJECT_NOT_FOUND,
    OTHER,
    STORAGE_ERROR,
    TABLES,
    UNDEFINED_TABLE,
    UNIQUE_VIOLATION,
    USER_EXISTS,
    DataStore,
    StoreError,
    StoreSession,
    StoreUser,
    build_email_link,
    matches_filter,
)
from .demo import seed_demo_data

logger = logging.getLogger(__name__)

# Columns filled in on insert when the caller leaves them out
_INSERT_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "profiles": {"avatar_url": None},
    "projects": {
        "editor_id": None,
        "description": "",
        "platforms": [],
        "reference_links": [],
        "desired_duration_seconds": None,
        "notes_for_editor": None,
        "status": "new",
        "priority": "normal",
    },
    "project_files": {},
    "comments": {"is_internal": False},
}

# Columns that must be unique besides the primary key
_UNIQUE_COLUMNS: Dict[str, tuple] = {
    "project_files": ("storage_path",),
}


def _sort_key(value: Any) -> tuple:
    if value is None:
        return (True, "")
    return (False, value)


class MemoryDataStore(DataStore):
    """
    Dictionary-backed data store.

    Args:
        public_base_url: Base URL used for signed file URLs
        require_email_confirmation: Sign-up returns no session until the
            emailed confirmation token is redeemed
        profile_trigger: Create the profile row during sign-up, like a
            database trigger would
        session_ttl: Lifetime of sessions
    """

    def __init__(
        self,
        public_base_url: str = "http://localhost:8000",
        require_email_confirmation: bool = False,
        profile_trigger: bool = False,
        session_ttl: timedelta = timedelta(hours=24),
        demo_seed: bool = False,
        demo_bucket: str = "project-files",
    ):
        self.public_base_url = public_base_url
        self.require_email_confirmation = require_email_confirmation
        self.profile_trigger = profile_trigger
        self.session_ttl = session_ttl
        self.demo_seed = demo_seed
        self.demo_bucket = demo_bucket

        self._tables: Dict[str, Dict[str, dict]] = {name: {} for name in TABLES}
        self._users: Dict[str, dict] = {}
        self._sessions: Dict[str, tuple[str, datetime]] = {}
        self._objects: Dict[tuple[str, str], tuple[bytes, str]] = {}

    # --- Sessions ---

    def _store_user(self, user: dict) -> StoreUser:
        return StoreUser(
            id=user["id"],
            email=user["email"],
            user_metadata=dict(user["user_metadata"]),
            email_confirmed=user["email_confirmed_at"] is not None,
        )

    def _find_user(self, email: str) -> Optional[dict]:
        email = email.strip().lower()
        for user in self._users.values():
            if user["email"] == email:
                return user
        return None

    def _start_session(self, user: dict) -> StoreSession:
        token = secrets.token_urlsafe(32)
        self._sessions[token] = (user["id"], datetime.utcnow() + self.session_ttl)
        return StoreSession(access_token=token, user=self._store_user(user))

    async def get_session(self, access_token: str) -> Optional[StoreSession]:
        entry = self._sessions.get(access_token)
        if entry is None:
            return None
        user_id, expires_at = entry
        if expires_at <= datetime.utcnow() or user_id not in self._users:
            self._sessions.pop(access_token, None)
            return None
        return StoreSession(access_token=access_token, user=self._store_user(self._users[user_id]))

    async def sign_in_with_password(self, email: str, password: str) -> StoreSession:
        user = self._find_user(email)
        if user is None or not verify_password(password, user["password_hash"]):
            raise StoreError(INVALID_CREDENTIALS, "Invalid login credentials")
        if user["email_confirmed_at"] is None:
            raise StoreError(EMAIL_NOT_CONFIRMED, "Email not confirmed")
        return self._start_session(user)

    def add_user(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
        confirmed: bool = True,
    ) -> StoreUser:
        """Register an identity directly, bypassing sign-up (demo seeding)."""
        user = self._new_user(email, password, metadata or {}, confirmed, user_id)
        return self._store_user(user)

    def _new_user(
        self,
        email: str,
        password: str,
        metadata: Dict[str, Any],
        confirmed: bool,
        user_id: Optional[str] = None,
    ) -> dict:
        email = email.strip().lower()
        if self._find_user(email) is not None:
            raise StoreError(USER_EXISTS, "User already registered")

        now = datetime.utcnow()
        user = {
            "id": user_id or str(uuid.uuid4()),
            "email": email,
            "password_hash": hash_password(password),
            "user_metadata": dict(metadata),
            "email_confirmed_at": now if confirmed else None,
            "created_at": now,
        }
        self._users[user["id"]] = user
        return user

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Dict[str, Any],
        redirect_url: str,
    ) -> tuple[StoreUser, Optional[StoreSession]]:
        user = self._new_user(email, password, metadata, not self.require_email_confirmation)
        email = user["email"]
        now = user["created_at"]

        if self.profile_trigger:
            self._tables["profiles"][user["id"]] = {
                "id": user["id"],
                "email": email,
                "full_name": metadata.get("full_name") or email.split("@")[0],
                "role": metadata.get("role") or "client",
                "avatar_url": None,
                "created_at": now,
            }

        if self.require_email_confirmation:
            self._send_link(user, "confirm", PURPOSE_CONFIRM, redirect_url)
            return self._store_user(user), None

        return self._store_user(user), self._start_session(user)

    def _send_link(self, user: dict, action: str, purpose: str, redirect_url: str) -> None:
        password_hash = user["password_hash"] if purpose == PURPOSE_RESET else None
        token = create_email_token(user["id"], purpose, password_hash)
        link = build_email_link(redirect_url, action, token)
        logger.info(f"Email to {user['email']} ({action}): {link}")

    async def resend_confirmation(self, email: str, redirect_url: str) -> None:
        user = self._find_user(email)
        if user is not None and user["email_confirmed_at"] is None:
            self._send_link(user, "confirm", PURPOSE_CONFIRM, redirect_url)

    async def reset_password(self, email: str, redirect_url: str) -> None:
        user = self._find_user(email)
        if user is not None:
            self._send_link(user, "reset-password", PURPOSE_RESET, redirect_url)

    async def confirm_email(self, token: str) -> StoreUser:
        user = self._users.get(read_email_token(token, PURPOSE_CONFIRM) or "")
        if user is None:
            raise StoreError(INVALID_TOKEN, "Confirmation link is invalid or has expired")
        if user["email_confirmed_at"] is None:
            user["email_confirmed_at"] = datetime.utcnow()
        return self._store_user(user)

    async def update_password(self, token: str, new_password: str) -> StoreUser:
        claims = read_email_claims(token, PURPOSE_RESET) or {}
        user = self._users.get(claims.get("sub") or "")
        if user is None or not reset_token_matches(claims, user["password_hash"]):
            raise StoreError(INVALID_TOKEN, "Reset link is invalid or has expired")
        user["password_hash"] = hash_password(new_password)
        # A reset ends every existing session of the user
        for access_token, (user_id, _) in list(self._sessions.items()):
            if user_id == user["id"]:
                del self._sessions[access_token]
        return self._store_user(user)

    async def sign_out(self, access_token: str) -> None:
        self._sessions.pop(access_token, None)

    # --- Tables ---

    def _table(self, table: str) -> Dict[str, dict]:
        if table not in self._tables:
            raise StoreError(UNDEFINED_TABLE, f'relation "{table}" does not exist')
        return self._tables[table]

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        rows = [
            row for row in self._table(table).values()
            if all(matches_filter(row.get(key), value) for key, value in (filters or {}).items())
        ]
        if order_by is not None:
            # Stable sort: ties keep insertion order. NULLs sort last
            # ascending and first descending, as in PostgreSQL.
            rows.sort(key=lambda row: _sort_key(row.get(order_by)), reverse=descending)
        return copy.deepcopy(rows)

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._table(table)
        new_row = dict(_INSERT_DEFAULTS.get(table, {}))
        new_row.update(copy.deepcopy(row))
        new_row.setdefault("id", str(uuid.uuid4()))
        now = datetime.utcnow()
        new_row.setdefault("created_at", now)
        if table == "projects":
            new_row.setdefault("updated_at", now)

        if new_row["id"] in rows:
            raise StoreError(
                UNIQUE_VIOLATION,
                f'duplicate key value violates unique constraint "{table}_pkey"',
            )
        for column in _UNIQUE_COLUMNS.get(table, ()):
            if any(existing.get(column) == new_row.get(column) for existing in rows.values()):
                raise StoreError(
                    UNIQUE_VIOLATION,
                    f'duplicate key value violates unique constraint "{table}_{column}_key"',
                )

        rows[new_row["id"]] = new_row
        return copy.deepcopy(new_row)

    async def update(
        self,
        table: str,
        row_id: str,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        rows = self._table(table)
        if "id" in patch:
            raise StoreError(OTHER, "Primary key cannot be updated")

        row = rows.get(row_id)
        if row is None:
            return None
        for key, value in (expected or {}).items():
            if not matches_filter(row.get(key), value):
                return None

        row.update(copy.deepcopy(patch))
        return copy.deepcopy(row)

    # --- Object storage ---

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        if not bucket or not path:
            raise StoreError(STORAGE_ERROR, "Bucket and path are required")
        if (bucket, path) in self._objects:
            raise StoreError(STORAGE_ERROR, f"Object already exists: {bucket}/{path}")
        self._objects[(bucket, path)] = (bytes(data), content_type)

    async def download(self, bucket: str, path: str) -> bytes:
        try:
            return self._objects[(bucket, path)][0]
        except KeyError:
            raise StoreError(OBJECT_NOT_FOUND, f"Object not found: {bucket}/{path}")

    async def create_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        if (bucket, path) not in self._objects:
            raise StoreError(OBJECT_NOT_FOUND, f"Object not found: {bucket}/{path}")
        token = create_storage_token(bucket, path, ttl_seconds)
        return build_signed_url(self.public_base_url, bucket, path, token)

    # --- Lifecycle ---

    async def prepare(self) -> None:
        if self.demo_seed:
            await seed_demo_data(self, self.demo_bucket)
