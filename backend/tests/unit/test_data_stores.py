"""
Contract tests run against both data store implementations.

Tests:
- Sessions: sign-up, sign-in, confirmation, reset, sign-out
- Tables: filters ("in" and NULL), ordering, inserts, unique violations
- Conditional updates (compare-and-set)
- Object storage and signed URLs
"""

from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from cutroom.core.database import build_engine, build_session_factory, create_all_tables
from cutroom.core.security import (
    PURPOSE_CONFIRM,
    PURPOSE_RESET,
    create_email_token,
    verify_storage_token,
)
from cutroom.core.storage import LocalObjectStorage
from cutroom.store import DataStore, MemoryDataStore, SqlDataStore, StoreError

from conftest import emailed_token

BUCKET = "project-files"


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request, tmp_path) -> AsyncGenerator[DataStore, None]:
    if request.param == "memory":
        yield MemoryDataStore()
        return

    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await create_all_tables(engine)
    sql_store = SqlDataStore(
        session_factory=build_session_factory(engine),
        storage=LocalObjectStorage(tmp_path / "objects"),
        engine=engine,
    )
    yield sql_store
    await sql_store.close()


async def add_profile(store: DataStore, email: str, role: str = "client") -> dict:
    user, _ = await store.sign_up(email, "password123", {"full_name": email}, "http://app")
    return await store.insert("profiles", {
        "id": user.id,
        "email": email,
        "full_name": email.split("@")[0].title(),
        "role": role,
    })


def project_row(client_id: str, **overrides) -> dict:
    row = {
        "client_id": client_id,
        "title": "Launch video",
        "editing_style": "Cinematic",
        "aspect_ratio": "16:9",
        "due_date": datetime.utcnow() + timedelta(days=2),
        "platforms": ["YouTube"],
        "reference_links": ["https://b.example", "https://a.example"],
    }
    row.update(overrides)
    return row


class TestSessions:
    @pytest.mark.asyncio
    async def test_sign_up_returns_session(self, store: DataStore):
        user, session = await store.sign_up("New@Example.com", "password123", {"role": "editor"}, "http://app")

        assert user.email == "new@example.com"
        assert user.user_metadata == {"role": "editor"}
        assert session is not None
        resolved = await store.get_session(session.access_token)
        assert resolved.user.id == user.id

    @pytest.mark.asyncio
    async def test_duplicate_sign_up(self, store: DataStore):
        await store.sign_up("dup@example.com", "password123", {}, "http://app")
        with pytest.raises(StoreError) as exc_info:
            await store.sign_up("DUP@example.com", "password123", {}, "http://app")
        assert exc_info.value.code == "user_exists"

    @pytest.mark.asyncio
    async def test_sign_in(self, store: DataStore):
        user, _ = await store.sign_up("a@example.com", "password123", {}, "http://app")
        session = await store.sign_in_with_password("A@example.com", "password123")
        assert session.user.id == user.id

    @pytest.mark.asyncio
    async def test_sign_in_wrong_password(self, store: DataStore):
        await store.sign_up("a@example.com", "password123", {}, "http://app")
        with pytest.raises(StoreError) as exc_info:
            await store.sign_in_with_password("a@example.com", "wrong-password")
        assert exc_info.value.code == "invalid_credentials"

    @pytest.mark.asyncio
    async def test_sign_in_unknown_email(self, store: DataStore):
        with pytest.raises(StoreError) as exc_info:
            await store.sign_in_with_password("nobody@example.com", "password123")
        assert exc_info.value.code == "invalid_credentials"

    @pytest.mark.asyncio
    async def test_unknown_token_has_no_session(self, store: DataStore):
        assert await store.get_session("not-a-token") is None

    @pytest.mark.asyncio
    async def test_sign_out_ends_session(self, store: DataStore):
        _, session = await store.sign_up("a@example.com", "password123", {}, "http://app")
        await store.sign_out(session.access_token)
        assert await store.get_session(session.access_token) is None

    @pytest.mark.asyncio
    async def test_email_confirmation_flow(self, store: DataStore):
        store.require_email_confirmation = True
        user, session = await store.sign_up("c@example.com", "password123", {}, "http://app")

        assert session is None
        assert user.email_confirmed is False
        with pytest.raises(StoreError) as exc_info:
            await store.sign_in_with_password("c@example.com", "password123")
        assert exc_info.value.code == "email_not_confirmed"

        confirmed = await store.confirm_email(create_email_token(user.id, PURPOSE_CONFIRM))
        assert confirmed.email_confirmed is True
        session = await store.sign_in_with_password("c@example.com", "password123")
        assert session.user.id == user.id

    @pytest.mark.asyncio
    async def test_confirm_rejects_reset_token(self, store: DataStore):
        user, _ = await store.sign_up("c@example.com", "password123", {}, "http://app")
        with pytest.raises(StoreError) as exc_info:
            await store.confirm_email(create_email_token(user.id, PURPOSE_RESET))
        assert exc_info.value.code == "invalid_token"

    @pytest.mark.asyncio
    async def test_password_update_ends_sessions(self, store: DataStore, caplog):
        user, session = await store.sign_up("r@example.com", "password123", {}, "http://app")
        with caplog.at_level("INFO"):
            await store.reset_password("r@example.com", "http://app")

        await store.update_password(emailed_token(caplog.text), "new-password-456")

        assert await store.get_session(session.access_token) is None
        with pytest.raises(StoreError):
            await store.sign_in_with_password("r@example.com", "password123")
        assert (await store.sign_in_with_password("r@example.com", "new-password-456")).user.id == user.id

    @pytest.mark.asyncio
    async def test_reset_link_works_once(self, store: DataStore, caplog):
        """Once the password changed, the same reset link is rejected."""
        await store.sign_up("r@example.com", "password123", {}, "http://app")
        with caplog.at_level("INFO"):
            await store.reset_password("r@example.com", "http://app")
        token = emailed_token(caplog.text)
        await store.update_password(token, "new-password-456")

        with pytest.raises(StoreError) as exc_info:
            await store.update_password(token, "attacker-password")

        assert exc_info.value.code == "invalid_token"
        await store.sign_in_with_password("r@example.com", "new-password-456")

    @pytest.mark.asyncio
    async def test_reset_token_without_password_binding(self, store: DataStore):
        user, _ = await store.sign_up("r@example.com", "password123", {}, "http://app")
        with pytest.raises(StoreError) as exc_info:
            await store.update_password(create_email_token(user.id, PURPOSE_RESET), "new-password-456")
        assert exc_info.value.code == "invalid_token"

    @pytest.mark.asyncio
    async def test_reset_for_unknown_email_is_silent(self, store: DataStore):
        await store.reset_password("ghost@example.com", "http://app")
        await store.resend_confirmation("ghost@example.com", "http://app")

    @pytest.mark.asyncio
    async def test_profile_trigger(self, store: DataStore):
        store.profile_trigger = True
        user, _ = await store.sign_up("t@example.com", "password123", {"full_name": "Tess", "role": "editor"}, "http://app")

        rows = await store.select("profiles", {"id": user.id})

        assert len(rows) == 1
        assert rows[0]["full_name"] == "Tess"
        assert rows[0]["role"] == "editor"


class TestTables:
    @pytest.mark.asyncio
    async def test_insert_fills_defaults(self, store: DataStore):
        client = await add_profile(store, "client@example.com")

        row = await store.insert("projects", project_row(client["id"]))

        assert row["id"]
        assert row["status"] == "new"
        assert row["priority"] == "normal"
        assert row["editor_id"] is None
        assert row["created_at"] is not None
        assert row["updated_at"] is not None

    @pytest.mark.asyncio
    async def test_list_columns_keep_order(self, store: DataStore):
        client = await add_profile(store, "client@example.com")
        links = ["https://z.example", "https://a.example", "https://m.example"]

        row = await store.insert("projects", project_row(client["id"], reference_links=links))
        (read,) = await store.select("projects", {"id": row["id"]})

        assert read["reference_links"] == links

    @pytest.mark.asyncio
    async def test_filters(self, store: DataStore):
        client = await add_profile(store, "client@example.com")
        editor = await add_profile(store, "editor@example.com", "editor")
        p1 = await store.insert("projects", project_row(client["id"]))
        p2 = await store.insert("projects", project_row(client["id"], editor_id=editor["id"], status="in_progress"))
        await store.insert("projects", project_row(client["id"], status="approved", editor_id=editor["id"]))

        unassigned = await store.select("projects", {"editor_id": None})
        active = await store.select("projects", {"status": ["new", "in_progress"]})

        assert [r["id"] for r in unassigned] == [p1["id"]]
        assert {r["id"] for r in active} == {p1["id"], p2["id"]}

    @pytest.mark.asyncio
    async def test_ordering(self, store: DataStore):
        client = await add_profile(store, "client@example.com")
        now = datetime.utcnow()
        for days in (2, 0, 1):
            await store.insert("projects", project_row(client["id"], title=f"t{days}", created_at=now - timedelta(days=days)))

        newest_first = await store.select("projects", order_by="created_at", descending=True)
        oldest_first = await store.select("projects", order_by="created_at")

        assert [r["title"] for r in newest_first] == ["t0", "t1", "t2"]
        assert [r["title"] for r in oldest_first] == ["t2", "t1", "t0"]

    @pytest.mark.asyncio
    async def test_duplicate_primary_key(self, store: DataStore):
        profile = await add_profile(store, "client@example.com")
        with pytest.raises(StoreError) as exc_info:
            await store.insert("profiles", {
                "id": profile["id"],
                "email": profile["email"],
                "full_name": "Again",
                "role": "client",
            })
        assert exc_info.value.code == "unique_violation"

    @pytest.mark.asyncio
    async def test_unknown_table(self, store: DataStore):
        with pytest.raises(StoreError) as exc_info:
            await store.select("invoices")
        assert exc_info.value.code == "undefined_table"

    @pytest.mark.asyncio
    async def test_returned_rows_are_copies(self, store: DataStore):
        client = await add_profile(store, "client@example.com")
        row = await store.insert("projects", project_row(client["id"]))
        row["platforms"].append("TikTok")

        (read,) = await store.select("projects", {"id": row["id"]})

        assert read["platforms"] == ["YouTube"]


class TestConditionalUpdate:
    @pytest.mark.asyncio
    async def test_update_when_expected_holds(self, store: DataStore):
        client = await add_profile(store, "client@example.com")
        row = await store.insert("projects", project_row(client["id"]))

        updated = await store.update(
            "projects", row["id"], {"status": "on_hold"},
            expected={"status": "new", "editor_id": None},
        )

        assert updated["status"] == "on_hold"

    @pytest.mark.asyncio
    async def test_no_update_when_expected_changed(self, store: DataStore):
        client = await add_profile(store, "client@example.com")
        row = await store.insert("projects", project_row(client["id"], status="cancelled"))

        result = await store.update("projects", row["id"], {"status": "on_hold"}, expected={"status": "new"})

        assert result is None
        (read,) = await store.select("projects", {"id": row["id"]})
        assert read["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_update_missing_row(self, store: DataStore):
        assert await store.update("projects", "missing", {"status": "on_hold"}) is None

    @pytest.mark.asyncio
    async def test_primary_key_is_immutable(self, store: DataStore):
        profile = await add_profile(store, "client@example.com")
        with pytest.raises(StoreError):
            await store.update("profiles", profile["id"], {"id": "other"})


class TestObjectStorage:
    @pytest.mark.asyncio
    async def test_upload_and_download(self, store: DataStore):
        await store.upload(BUCKET, "p1/raw/abc_clip.mp4", b"video-bytes", "video/mp4")
        assert await store.download(BUCKET, "p1/raw/abc_clip.mp4") == b"video-bytes"

    @pytest.mark.asyncio
    async def test_upload_does_not_overwrite(self, store: DataStore):
        await store.upload(BUCKET, "p1/raw/abc_clip.mp4", b"one", "video/mp4")
        with pytest.raises(StoreError) as exc_info:
            await store.upload(BUCKET, "p1/raw/abc_clip.mp4", b"two", "video/mp4")
        assert exc_info.value.code == "storage_error"

    @pytest.mark.asyncio
    async def test_download_missing(self, store: DataStore):
        with pytest.raises(StoreError) as exc_info:
            await store.download(BUCKET, "p1/raw/missing.mp4")
        assert exc_info.value.code == "not_found"

    @pytest.mark.asyncio
    async def test_signed_url_names_object(self, store: DataStore):
        await store.upload(BUCKET, "p1/final/abc_cut.mp4", b"cut", "video/mp4")

        url = await store.create_signed_url(BUCKET, "p1/final/abc_cut.mp4", 60)

        assert url.startswith(f"http://localhost:8000/api/storage/{BUCKET}/p1/final/abc_cut.mp4?token=")
        token = url.split("token=", 1)[1]
        assert verify_storage_token(token, BUCKET, "p1/final/abc_cut.mp4")
        assert not verify_storage_token(token, BUCKET, "p1/final/other.mp4")

    @pytest.mark.asyncio
    async def test_signed_url_for_missing_object(self, store: DataStore):
        with pytest.raises(StoreError) as exc_info:
            await store.create_signed_url(BUCKET, "p1/raw/missing.mp4", 60)
        assert exc_info.value.code == "not_found"
