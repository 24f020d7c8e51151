"""
Access layer.

Single entry point used by the API: one object exposing the ``auth``,
``projects``, ``files``, ``comments`` and ``admin`` operation groups over a
shared store gateway. Which data store sits underneath is decided by
``build_access_layer`` from the settings.
"""

import logging

from cutroom.core.config import Settings
from cutroom.store import DataStore, build_data_store

from .admin import AdminService
from .auth import AuthService
from .comments import CommentService
from .files import FileService
from .gateway import StoreGateway
from .projects import ProjectService

logger = logging.getLogger(__name__)


class AccessLayer:
    """
    Typed facade over a data store.

    Example:
        >>> access = build_access_layer(get_settings())
        >>> await access.initialize()
        >>> result = await access.auth.sign_in("client@example.com", "password")
    """

    def __init__(self, store: DataStore, settings: Settings):
        self.store = store
        self.settings = settings
        self.gateway = StoreGateway(store, settings.remote_timeout_seconds)

        self.auth = AuthService(self.gateway, settings)
        self.admin = AdminService(self.gateway)
        self.files = FileService(self.gateway, settings)
        self.comments = CommentService(self.gateway)
        self.projects = ProjectService(self.gateway, self.files, self.comments, self.admin)

    async def initialize(self) -> None:
        """Let the data store create its schema or seed demo data, as configured."""
        await self.gateway.call("prepare store", self.store.prepare())

    async def check_health(self) -> None:
        """Raise an AccessError if the data store is unavailable."""
        await self.gateway.call("health check", self.store.check_health())

    async def close(self) -> None:
        await self.store.close()


def build_access_layer(settings: Settings) -> AccessLayer:
    """Access layer over the data store selected in ``settings``."""
    logger.info(f"Using {settings.data_store} data store")
    return AccessLayer(build_data_store(settings), settings)
