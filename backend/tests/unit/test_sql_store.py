"""
Unit tests specific to the SQL data store.

Tests:
- Translation of database errors into StoreError codes
- Missing tables reported as undefined_table
- Access tokens bound to stored sessions
"""

from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from cutroom.core.database import drop_all_tables
from cutroom.core.security import create_access_token
from cutroom.store import SqlDataStore, StoreError
from cutroom.store.sql import translate_error


class TestTranslateError:
    def test_sqlite_unique_constraint(self):
        error = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: profiles.id"))
        assert translate_error(error).code == "unique_violation"

    def test_postgres_unique_violation_by_sqlstate(self):
        orig = SimpleNamespace(sqlstate="23505")
        error = IntegrityError("INSERT", {}, orig)
        assert translate_error(error).code == "unique_violation"

    def test_other_integrity_error(self):
        error = IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: projects.title"))
        assert translate_error(error).code == "other"

    def test_sqlite_missing_table(self):
        error = OperationalError("SELECT", {}, Exception("no such table: profiles"))
        assert translate_error(error).code == "undefined_table"

    def test_postgres_undefined_table(self):
        error = ProgrammingError("SELECT", {}, Exception('relation "profiles" does not exist'))
        assert translate_error(error).code == "undefined_table"

    def test_postgres_undefined_table_by_sqlstate(self):
        error = ProgrammingError("SELECT", {}, SimpleNamespace(sqlstate="42P01"))
        assert translate_error(error).code == "undefined_table"

    def test_connection_failure_is_other(self):
        error = OperationalError("SELECT", {}, Exception("unable to open database file"))
        assert translate_error(error).code == "other"


class TestMissingTables:
    @pytest.mark.asyncio
    async def test_select_without_schema(self, sql_store: SqlDataStore):
        """A database without tables reports undefined_table."""
        await drop_all_tables(sql_store._engine)

        with pytest.raises(StoreError) as exc_info:
            await sql_store.select("profiles", {"id": "u1"})

        assert exc_info.value.code == "undefined_table"

    @pytest.mark.asyncio
    async def test_create_schema_restores_tables(self, sql_store: SqlDataStore):
        await drop_all_tables(sql_store._engine)
        await sql_store.create_schema()

        assert await sql_store.select("profiles") == []


class TestSessionTokens:
    @pytest.mark.asyncio
    async def test_token_for_unknown_session_is_rejected(self, sql_store: SqlDataStore):
        """A validly signed token whose session row is gone resolves to nothing."""
        user, _ = await sql_store.sign_up("a@example.com", "password123", {}, "http://app")
        token = create_access_token(user.id, "no-such-session")

        assert await sql_store.get_session(token) is None

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self, sql_store: SqlDataStore):
        await sql_store.sign_up("a@example.com", "password123", {}, "http://app")
        first = await sql_store.sign_in_with_password("a@example.com", "password123")
        second = await sql_store.sign_in_with_password("a@example.com", "password123")

        await sql_store.sign_out(first.access_token)

        assert await sql_store.get_session(first.access_token) is None
        assert await sql_store.get_session(second.access_token) is not None

    @pytest.mark.asyncio
    async def test_health_check(self, sql_store: SqlDataStore):
        await sql_store.check_health()
