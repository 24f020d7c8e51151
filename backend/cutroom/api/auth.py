"""
Authentication endpoints for Cutroom.

Sign-up, sign-in and sign-out, plus the emailed confirmation and password
reset flows. Links are sent to APP_URL; the front end posts the token
back to /confirm or /update-password.
"""

from fastapi import APIRouter, Depends, status

from cutroom.schemas.auth import (
    ConfirmEmailRequest,
    EmailRequest,
    MessageResponse,
    PasswordUpdateRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
)
from cutroom.schemas.profile import ProfileView
from cutroom.services import AccessLayer, SessionContext

from .deps import get_access_layer, get_current_context

router = APIRouter()


# =============================================================================
# Sessions
# =============================================================================


@router.post(
    "/sign-up",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    name="sign_up",
)
async def sign_up(
    data: SignUpRequest,
    access: AccessLayer = Depends(get_access_layer),
) -> SignUpResponse:
    """
    Register a new client or editor.

    When email confirmation is required no session is returned; the user
    signs in after following the emailed link.

    Raises:
        400: If the email is already registered
    """
    result = await access.auth.sign_up(data.email, data.password, data.full_name, data.role)
    return SignUpResponse(
        user_id=result.user_id,
        email=result.email,
        confirmation_required=result.confirmation_required,
        access_token=result.access_token,
        user=result.profile,
    )


@router.post("/sign-in", response_model=SessionResponse, name="sign_in")
async def sign_in(
    data: SignInRequest,
    access: AccessLayer = Depends(get_access_layer),
) -> SessionResponse:
    """
    Sign in with email and password.

    Creates the user's profile on first sign-in.

    Raises:
        401: Invalid credentials or unconfirmed email
        503: Database tables have not been created
    """
    result = await access.auth.sign_in(data.email, data.password)
    return SessionResponse(access_token=result.access_token, user=result.profile)


@router.post("/sign-out", response_model=MessageResponse)
async def sign_out(
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> MessageResponse:
    await access.auth.sign_out(ctx)
    return MessageResponse(message="Signed out")


@router.get("/me", response_model=ProfileView)
async def get_me(
    ctx: SessionContext = Depends(get_current_context),
    access: AccessLayer = Depends(get_access_layer),
) -> ProfileView:
    """Profile of the signed-in user."""
    return await access.auth.current_profile(ctx)


# =============================================================================
# Email flows
# =============================================================================


@router.post("/resend-confirmation", response_model=MessageResponse, name="resend_confirmation")
async def resend_confirmation(
    data: EmailRequest,
    access: AccessLayer = Depends(get_access_layer),
) -> MessageResponse:
    """Send the confirmation link again. Unknown emails get the same response."""
    await access.auth.resend_confirmation(data.email)
    return MessageResponse(message="If the account exists and is unconfirmed, a new link was sent")


@router.post("/confirm", response_model=MessageResponse)
async def confirm_email(
    data: ConfirmEmailRequest,
    access: AccessLayer = Depends(get_access_layer),
) -> MessageResponse:
    await access.auth.confirm_email(data.token)
    return MessageResponse(message="Email confirmed; you can sign in now")


@router.post("/reset-password", response_model=MessageResponse, name="reset_password")
async def reset_password(
    data: EmailRequest,
    access: AccessLayer = Depends(get_access_layer),
) -> MessageResponse:
    """Send a password reset link. Unknown emails get the same response."""
    await access.auth.reset_password(data.email)
    return MessageResponse(message="If the account exists, a reset link was sent")


@router.post("/update-password", response_model=MessageResponse, name="update_password")
async def update_password(
    data: PasswordUpdateRequest,
    access: AccessLayer = Depends(get_access_layer),
) -> MessageResponse:
    """
    Set a new password using the emailed reset token.

    Existing sessions of the user end.
    """
    await access.auth.update_password(data.token, data.password)
    return MessageResponse(message="Password updated; sign in with the new password")
