"""Authentication API routes."""
from fastapi import APIRouter, status, Request

from vig.api.deps import DbSession, CurrentUser
from vig.errors import AuthenticationError, ValidationError
from vig.schemas.common import MessageResponse
from vig.schemas.user import (
    AuthResponse,
    ForgotPasswordRequest,
    FreeCreditsResponse,
    ProfileUpdate,
    RefreshRequest,
    ResetPasswordRequest,
    Token,
    UserLogin,
    UserRegister,
    UserResponse,
)
from vig.services.auth_service import AuthService
from vig.services.credit_service import CreditService
from vig.config import get_settings
from vig.utils.rate_limiter import limiter, rate_limit_auth

settings = get_settings()
router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def register(
    request: Request,
    user_data: UserRegister,
    db: DbSession,
):
    """Register a new user account with the signup bonus."""
    auth_service = AuthService(db)
    user = await auth_service.register(user_data)
    tokens = auth_service.create_tokens(user)

    return AuthResponse(
        message="User registered successfully",
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
@rate_limit_auth()
async def login(
    request: Request,
    credentials: UserLogin,
    db: DbSession,
):
    """Authenticate user and return JWT tokens."""
    auth_service = AuthService(db)

    user = await auth_service.authenticate(
        email=credentials.email,
        password=credentials.password,
    )
    if user is None:
        raise AuthenticationError("Invalid email or password")

    granted = await auth_service.grant_login_bonus(user)
    tokens = auth_service.create_tokens(user)

    return AuthResponse(
        message="Login successful",
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=UserResponse.model_validate(user),
        free_credits_granted=granted,
    )


@router.post("/refresh", response_model=Token)
@limiter.limit("30/minute")
async def refresh_token(
    request: Request,
    body: RefreshRequest,
    db: DbSession,
):
    """Refresh access token using refresh token."""
    auth_service = AuthService(db)

    tokens = await auth_service.refresh_tokens(body.refresh_token)
    if tokens is None:
        raise AuthenticationError("Invalid or expired refresh token")

    return tokens


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: CurrentUser):
    """Get current authenticated user information."""
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    update_data: ProfileUpdate,
    current_user: CurrentUser,
    db: DbSession,
):
    """Update name and email of the current user."""
    return await AuthService(db).update_profile(current_user, update_data)


@router.post("/free-credits", response_model=FreeCreditsResponse)
async def claim_free_credits(current_user: CurrentUser, db: DbSession):
    """Claim the one-time free credit grant."""
    new_balance = await CreditService(db).grant_free_credits(current_user.id)
    if new_balance is None:
        raise ValidationError("Free credits have already been received")

    return FreeCreditsResponse(
        message=f"{settings.signup_bonus_points} free credits added to your account",
        points_added=settings.signup_bonus_points,
        total_points=new_balance,
    )


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit("5/minute")
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: DbSession,
):
    """Send a password reset link if the account exists."""
    await AuthService(db).request_password_reset(body.email)
    return MessageResponse(
        message="If an account with that email exists, a password reset link has been sent."
    )


@router.post("/reset-password", response_model=MessageResponse)
@rate_limit_auth()
async def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    db: DbSession,
):
    """Set a new password using a reset token."""
    await AuthService(db).reset_password(body.token, body.password)
    return MessageResponse(message="Password has been reset successfully")
