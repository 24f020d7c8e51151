"""
Data stores behind the access layer.

    from cutroom.store import build_data_store
    store = build_data_store(get_settings())
"""

from datetime import timedelta

from cutroom.core.config import Settings
from cutroom.core.database import build_engine, build_session_factory
from cutroom.core.storage import LocalObjectStorage

from .base import DataStore, StoreError, StoreSession, StoreUser
from .memory import MemoryDataStore
from .sql import SqlDataStore


def build_data_store(settings: Settings) -> DataStore:
    """Create the data store selected by ``settings.data_store``."""
    session_ttl = timedelta(hours=settings.access_token_expire_hours)

    if settings.data_store == "memory":
        return MemoryDataStore(
            public_base_url=settings.public_base_url,
            require_email_confirmation=settings.require_email_confirmation,
            profile_trigger=settings.store_profile_trigger,
            session_ttl=session_ttl,
            demo_seed=settings.demo_seed,
            demo_bucket=settings.storage_bucket,
        )

    engine = build_engine(settings.database_url, echo=settings.debug)
    return SqlDataStore(
        session_factory=build_session_factory(engine),
        storage=LocalObjectStorage(settings.storage_path),
        public_base_url=settings.public_base_url,
        require_email_confirmation=settings.require_email_confirmation,
        profile_trigger=settings.store_profile_trigger,
        session_ttl=session_ttl,
        engine=engine,
        create_schema_on_startup=settings.create_schema_on_startup,
    )


__all__ = [
    "DataStore",
    "StoreError",
    "StoreSession",
    "StoreUser",
    "MemoryDataStore",
    "SqlDataStore",
    "build_data_store",
]
