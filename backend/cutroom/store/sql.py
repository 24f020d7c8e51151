"""
SQL data store.

Relational tables through async SQLAlchemy, identities and sessions in the
store-internal auth tables, and objects in LocalObjectStorage. Database and
filesystem errors are translated into StoreError codes:

- missing table (SQLite "no such table", PostgreSQL 42P01) -> undefined_table
- duplicate key (SQLite UNIQUE constraint, PostgreSQL 23505) -> unique_violation
- anything else -> other
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Any, AsyncIterator, Dict, List, Optional

from jose import JWTError
from sqlalchemy import delete, inspect, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from cutroom.core.database import create_all_tables
from cutroom.core.security import (
    PURPOSE_CONFIRM,
    PURPOSE_RESET,
    create_access_token,
    create_email_token,
    create_storage_token,
    decode_token,
    hash_password,
    read_email_claims,
    read_email_token,
    reset_token_matches,
    verify_password,
)
from cutroom.core.storage import LocalObjectStorage, build_signed_url
from cutroom.models import TABLE_MODELS, AuthSession, AuthUser, Profile

from .base import (
    EMAIL_NOT_CONFIRMED,
    INVALID_CREDENTIALS,
    INVALID_TOKEN,
    OBJECT_NOT_FOUND,
    OTHER,
    STORAGE_ERROR,
    UNDEFINED_TABLE,
    UNIQUE_VIOLATION,
    USER_EXISTS,
    DataStore,
    StoreError,
    StoreSession,
    StoreUser,
    build_email_link,
)

logger = logging.getLogger(__name__)


def _sqlstate(error: SQLAlchemyError) -> Optional[str]:
    orig = getattr(error, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _is_undefined_table(error: SQLAlchemyError) -> bool:
    message = str(getattr(error, "orig", error)).lower()
    return _sqlstate(error) == "42P01" or "no such table" in message or (
        "relation" in message and "does not exist" in message
    )


def _is_unique_violation(error: SQLAlchemyError) -> bool:
    message = str(getattr(error, "orig", error)).lower()
    return _sqlstate(error) == "23505" or "unique constraint" in message or "duplicate key" in message


def translate_error(error: SQLAlchemyError) -> StoreError:
    """Map a SQLAlchemy exception to a StoreError."""
    message = str(getattr(error, "orig", None) or error)
    if isinstance(error, IntegrityError) and _is_unique_violation(error):
        return StoreError(UNIQUE_VIOLATION, message)
    if _is_undefined_table(error):
        return StoreError(UNDEFINED_TABLE, message)
    return StoreError(OTHER, message)


def _to_row(obj) -> Dict[str, Any]:
    row = {}
    for attr in inspect(obj).mapper.column_attrs:
        value = getattr(obj, attr.key)
        row[attr.key] = list(value) if isinstance(value, list) else value
    return row


def _to_store_user(user: AuthUser) -> StoreUser:
    return StoreUser(
        id=user.id,
        email=user.email,
        user_metadata=dict(user.user_metadata or {}),
        email_confirmed=user.email_confirmed_at is not None,
    )


class SqlDataStore(DataStore):
    """
    Data store over a relational database and local object storage.

    Args:
        session_factory: Async session factory bound to the database
        storage: Object storage for uploaded files
        public_base_url: Base URL used for signed file URLs
        require_email_confirmation: Sign-up returns no session until the
            emailed confirmation token is redeemed
        profile_trigger: Create the profile row during sign-up, like a
            database trigger would
        session_ttl: Lifetime of sessions
        engine: Engine to dispose on close(), if owned by the store
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: LocalObjectStorage,
        public_base_url: str = "http://localhost:8000",
        require_email_confirmation: bool = False,
        profile_trigger: bool = False,
        session_ttl: timedelta = timedelta(hours=24),
        engine: Optional[AsyncEngine] = None,
        create_schema_on_startup: bool = False,
    ):
        self._session_factory = session_factory
        self.storage = storage
        self.public_base_url = public_base_url
        self.require_email_confirmation = require_email_confirmation
        self.profile_trigger = profile_trigger
        self.session_ttl = session_ttl
        self._engine = engine
        self.create_schema_on_startup = create_schema_on_startup

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        """Session inside a transaction, committed on success."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            raise translate_error(e) from e

    def _model(self, table: str):
        try:
            return TABLE_MODELS[table]
        except KeyError:
            raise StoreError(UNDEFINED_TABLE, f'relation "{table}" does not exist')

    def _column(self, model, name: str):
        if name not in model.__table__.columns:
            raise StoreError(OTHER, f'column "{name}" of relation "{model.__tablename__}" does not exist')
        return getattr(model, name)

    # --- Sessions ---

    async def _start_session(self, db: AsyncSession, user: AuthUser) -> StoreSession:
        auth_session = AuthSession(
            user_id=user.id,
            expires_at=datetime.utcnow() + self.session_ttl,
        )
        db.add(auth_session)
        await db.flush()
        token = create_access_token(user.id, auth_session.id, self.session_ttl)
        return StoreSession(access_token=token, user=_to_store_user(user))

    async def _find_user(self, db: AsyncSession, email: str) -> Optional[AuthUser]:
        result = await db.execute(select(AuthUser).where(AuthUser.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def get_session(self, access_token: str) -> Optional[StoreSession]:
        try:
            payload = decode_token(access_token)
        except JWTError:
            return None
        session_id = payload.get("sid")
        if not session_id:
            return None

        async with self._transaction() as db:
            result = await db.execute(
                select(AuthUser)
                .join(AuthSession, AuthSession.user_id == AuthUser.id)
                .where(AuthSession.id == session_id)
                .where(AuthSession.expires_at > datetime.utcnow())
            )
            user = result.scalar_one_or_none()
            if user is None:
                return None
            return StoreSession(access_token=access_token, user=_to_store_user(user))

    async def sign_in_with_password(self, email: str, password: str) -> StoreSession:
        async with self._transaction() as db:
            user = await self._find_user(db, email)
            if user is None or not verify_password(password, user.password_hash):
                raise StoreError(INVALID_CREDENTIALS, "Invalid login credentials")
            if user.email_confirmed_at is None:
                raise StoreError(EMAIL_NOT_CONFIRMED, "Email not confirmed")
            return await self._start_session(db, user)

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Dict[str, Any],
        redirect_url: str,
    ) -> tuple[StoreUser, Optional[StoreSession]]:
        email = email.strip().lower()
        async with self._transaction() as db:
            if await self._find_user(db, email) is not None:
                raise StoreError(USER_EXISTS, "User already registered")

            now = datetime.utcnow()
            user = AuthUser(
                email=email,
                password_hash=hash_password(password),
                user_metadata=dict(metadata),
                email_confirmed_at=None if self.require_email_confirmation else now,
            )
            db.add(user)
            await db.flush()

            if self.profile_trigger:
                db.add(Profile(
                    id=user.id,
                    email=email,
                    full_name=metadata.get("full_name") or email.split("@")[0],
                    role=metadata.get("role") or "client",
                ))
                await db.flush()

            if self.require_email_confirmation:
                self._send_link(user, "confirm", PURPOSE_CONFIRM, redirect_url)
                return _to_store_user(user), None

            return _to_store_user(user), await self._start_session(db, user)

    def _send_link(self, user: AuthUser, action: str, purpose: str, redirect_url: str) -> None:
        password_hash = user.password_hash if purpose == PURPOSE_RESET else None
        token = create_email_token(user.id, purpose, password_hash)
        link = build_email_link(redirect_url, action, token)
        logger.info(f"Email to {user.email} ({action}): {link}")

    async def resend_confirmation(self, email: str, redirect_url: str) -> None:
        async with self._transaction() as db:
            user = await self._find_user(db, email)
            if user is not None and user.email_confirmed_at is None:
                self._send_link(user, "confirm", PURPOSE_CONFIRM, redirect_url)

    async def reset_password(self, email: str, redirect_url: str) -> None:
        async with self._transaction() as db:
            user = await self._find_user(db, email)
            if user is not None:
                self._send_link(user, "reset-password", PURPOSE_RESET, redirect_url)

    async def confirm_email(self, token: str) -> StoreUser:
        user_id = read_email_token(token, PURPOSE_CONFIRM)
        async with self._transaction() as db:
            user = await db.get(AuthUser, user_id) if user_id else None
            if user is None:
                raise StoreError(INVALID_TOKEN, "Confirmation link is invalid or has expired")
            if user.email_confirmed_at is None:
                user.email_confirmed_at = datetime.utcnow()
            return _to_store_user(user)

    async def update_password(self, token: str, new_password: str) -> StoreUser:
        claims = read_email_claims(token, PURPOSE_RESET) or {}
        user_id = claims.get("sub")
        async with self._transaction() as db:
            user = await db.get(AuthUser, user_id) if user_id else None
            if user is None or not reset_token_matches(claims, user.password_hash):
                raise StoreError(INVALID_TOKEN, "Reset link is invalid or has expired")
            user.password_hash = hash_password(new_password)
            # A reset ends every existing session of the user
            await db.execute(delete(AuthSession).where(AuthSession.user_id == user.id))
            return _to_store_user(user)

    async def sign_out(self, access_token: str) -> None:
        try:
            session_id = decode_token(access_token).get("sid")
        except JWTError:
            return
        if not session_id:
            return
        async with self._transaction() as db:
            await db.execute(delete(AuthSession).where(AuthSession.id == session_id))

    # --- Tables ---

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        model = self._model(table)
        query = select(model)
        for key, value in (filters or {}).items():
            column = self._column(model, key)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.where(column.in_(list(value)))
            elif value is None:
                query = query.where(column.is_(None))
            else:
                query = query.where(column == value)
        if order_by is not None:
            column = self._column(model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())

        async with self._transaction() as db:
            result = await db.execute(query)
            return [_to_row(obj) for obj in result.scalars().all()]

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model(table)
        for key in row:
            self._column(model, key)

        async with self._transaction() as db:
            obj = model(**row)
            db.add(obj)
            await db.flush()
            await db.refresh(obj)
            return _to_row(obj)

    async def update(
        self,
        table: str,
        row_id: str,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        model = self._model(table)
        if "id" in patch:
            raise StoreError(OTHER, "Primary key cannot be updated")
        for key in patch:
            self._column(model, key)

        statement = update(model).where(model.id == row_id)
        for key, value in (expected or {}).items():
            column = self._column(model, key)
            if isinstance(value, (list, tuple, set, frozenset)):
                statement = statement.where(column.in_(list(value)))
            elif value is None:
                statement = statement.where(column.is_(None))
            else:
                statement = statement.where(column == value)
        statement = statement.values(**patch).execution_options(synchronize_session=False)

        async with self._transaction() as db:
            result = await db.execute(statement)
            if result.rowcount == 0:
                return None
            refreshed = await db.execute(select(model).where(model.id == row_id))
            return _to_row(refreshed.scalar_one())

    # --- Object storage ---

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> None:
        try:
            await self.storage.write(bucket, path, data)
        except FileExistsError:
            raise StoreError(STORAGE_ERROR, f"Object already exists: {bucket}/{path}")
        except (OSError, ValueError) as e:
            raise StoreError(STORAGE_ERROR, f"Failed to store {bucket}/{path}: {e}")

    async def download(self, bucket: str, path: str) -> bytes:
        try:
            return await self.storage.read(bucket, path)
        except (FileNotFoundError, IsADirectoryError, ValueError):
            raise StoreError(OBJECT_NOT_FOUND, f"Object not found: {bucket}/{path}")
        except OSError as e:
            raise StoreError(STORAGE_ERROR, f"Failed to read {bucket}/{path}: {e}")

    async def create_signed_url(self, bucket: str, path: str, ttl_seconds: int) -> str:
        if not self.storage.exists(bucket, path):
            raise StoreError(OBJECT_NOT_FOUND, f"Object not found: {bucket}/{path}")
        token = create_storage_token(bucket, path, ttl_seconds)
        return build_signed_url(self.public_base_url, bucket, path, token)

    # --- Lifecycle ---

    async def create_schema(self) -> None:
        """Create missing tables (development and tests)."""
        if self._engine is None:
            raise StoreError(OTHER, "No engine configured")
        try:
            await create_all_tables(self._engine)
        except SQLAlchemyError as e:
            raise translate_error(e) from e

    async def prepare(self) -> None:
        if self.create_schema_on_startup:
            await self.create_schema()
            logger.info("Database schema ready")

    async def check_health(self) -> None:
        async with self._transaction() as db:
            await db.execute(text("SELECT 1"))

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
