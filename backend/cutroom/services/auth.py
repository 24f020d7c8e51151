"""
Authentication service.

Sign-up, sign-in, session resolution and the emailed confirmation/reset
flows. Every successful sign-in (and every sign-up that yields a session)
makes sure the user has a profile; provisioning is idempotent and safe
against concurrent sign-ins of the same user.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from cutroom.core.config import Settings
from cutroom.core.errors import Conflict, InvalidRequest, NotAuthenticated, RemoteFailure
from cutroom.rules.constants import ROLE_ADMIN, ROLE_CLIENT, ROLE_EDITOR, ROLES
from cutroom.schemas.profile import ProfileView, default_avatar_url
from cutroom.store.base import StoreUser

from .context import SessionContext
from .gateway import StoreGateway

logger = logging.getLogger(__name__)

# Roles a user may pick when registering
SIGN_UP_ROLES = frozenset({ROLE_CLIENT, ROLE_EDITOR})


@dataclass
class AuthResult:
    access_token: str
    profile: ProfileView


@dataclass
class SignUpResult:
    """
    Outcome of a sign-up.

    Without a session (email confirmation pending) ``access_token`` and
    ``profile`` are None.
    """

    user_id: str
    email: str
    confirmation_required: bool
    access_token: Optional[str] = None
    profile: Optional[ProfileView] = None


class AuthService:
    def __init__(self, gateway: StoreGateway, settings: Settings):
        self.gateway = gateway
        self.settings = settings

    @property
    def store(self):
        return self.gateway.store

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        role: str = ROLE_CLIENT,
    ) -> SignUpResult:
        """
        Register a new client or editor.

        Raises:
            InvalidRequest: If the role is not selectable or the email is taken
        """
        if role not in SIGN_UP_ROLES:
            raise InvalidRequest(f"Cannot sign up with role '{role}'", field="role")

        user, session = await self.gateway.call(
            "sign up",
            self.store.sign_up(
                email,
                password,
                {"full_name": full_name, "role": role},
                self.settings.redirect_url,
            ),
        )
        logger.info(f"Signed up user {user.id} ({role})")

        if session is None:
            return SignUpResult(user_id=user.id, email=user.email, confirmation_required=True)

        profile = await self.ensure_profile(session.user)
        return SignUpResult(
            user_id=user.id,
            email=user.email,
            confirmation_required=False,
            access_token=session.access_token,
            profile=profile,
        )

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """
        Start a session with email and password and provision the profile.

        Raises:
            NotAuthenticated: On wrong credentials or an unconfirmed email
        """
        session = await self.gateway.call(
            "sign in",
            self.store.sign_in_with_password(email, password),
        )
        profile = await self.ensure_profile(session.user)
        return AuthResult(access_token=session.access_token, profile=profile)

    async def _get_profile(self, user_id: str) -> Optional[ProfileView]:
        rows = await self.gateway.call(
            "select profile",
            self.store.select("profiles", {"id": user_id}),
        )
        return ProfileView(**rows[0]) if rows else None

    def _initial_role(self, user: StoreUser) -> str:
        if user.email.lower() in self.settings.admin_emails_set:
            return ROLE_ADMIN
        role = user.user_metadata.get("role")
        return role if role in ROLES else ROLE_CLIENT

    async def ensure_profile(self, user: StoreUser) -> ProfileView:
        """
        Return the user's profile, creating it on first use.

        A concurrent creation of the same profile is not an error: the
        duplicate insert is ignored and the existing row returned.

        Raises:
            BackendNotInitialized: If the profiles table does not exist
            RemoteFailure: On any other store failure
        """
        profile = await self._get_profile(user.id)
        if profile is not None:
            return profile

        full_name = (user.user_metadata.get("full_name") or "").strip() or user.email.split("@")[0]
        row = {
            "id": user.id,
            "email": user.email,
            "full_name": full_name,
            "role": self._initial_role(user),
            "avatar_url": default_avatar_url(full_name),
        }
        try:
            created = await self.gateway.call("insert profile", self.store.insert("profiles", row))
        except Conflict:
            logger.debug(f"Profile for {user.id} was created concurrently, re-reading it")
            profile = await self._get_profile(user.id)
            if profile is None:
                raise RemoteFailure("Profile conflict reported but no profile found", user_id=user.id)
            return profile

        logger.info(f"Provisioned profile for {user.id} with role {row['role']}")
        return ProfileView(**created)

    async def resolve_session(self, access_token: str) -> SessionContext:
        """
        Resolve a bearer token to the caller's context.

        Raises:
            NotAuthenticated: If the session is missing, expired or has no profile
        """
        session = await self.gateway.call("get session", self.store.get_session(access_token))
        if session is None:
            raise NotAuthenticated("Session is missing or has expired")
        profile = await self._get_profile(session.user.id)
        if profile is None:
            raise NotAuthenticated("No profile exists for this session; sign in again")
        return SessionContext(
            user_id=profile.id,
            email=profile.email,
            role=profile.role,
            access_token=access_token,
            full_name=profile.full_name,
        )

    async def current_profile(self, ctx: SessionContext) -> ProfileView:
        profile = await self._get_profile(ctx.user_id)
        if profile is None:
            raise NotAuthenticated("No profile exists for this session; sign in again")
        return profile

    async def sign_out(self, ctx: SessionContext) -> None:
        await self.gateway.call("sign out", self.store.sign_out(ctx.access_token))

    async def resend_confirmation(self, email: str) -> None:
        await self.gateway.call(
            "resend confirmation",
            self.store.resend_confirmation(email, self.settings.redirect_url),
        )

    async def reset_password(self, email: str) -> None:
        await self.gateway.call(
            "reset password",
            self.store.reset_password(email, self.settings.redirect_url),
        )

    async def confirm_email(self, token: str) -> StoreUser:
        """Redeem an emailed confirmation token. Raises InvalidRequest if it is bad."""
        return await self.gateway.call("confirm email", self.store.confirm_email(token))

    async def update_password(self, token: str, new_password: str) -> None:
        """Set a new password from an emailed reset token; other sessions end."""
        user = await self.gateway.call(
            "update password",
            self.store.update_password(token, new_password),
        )
        logger.info(f"Password updated for user {user.id}")
