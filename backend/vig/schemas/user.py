"""User schemas for request/response validation."""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from vig.models.credit_transaction import CreditReason
from vig.models.user import UserRole
from vig.schemas.common import CamelModel, Pagination


class UserRegister(BaseModel):
    """Schema for user registration."""
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str


class ProfileUpdate(CamelModel):
    """Schema for a user updating their own profile."""
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    email: EmailStr | None = None


class UserAdminUpdate(ProfileUpdate):
    """Fields only an admin may change in addition to the profile."""
    role: UserRole | None = None
    points: int | None = Field(None, ge=0)
    is_active: bool | None = None


class UserResponse(CamelModel):
    """Schema for user response."""
    id: int
    email: str
    username: str
    first_name: str | None
    last_name: str | None
    role: UserRole
    is_active: bool
    points: int
    has_received_free_credits: bool
    created_at: datetime | None = None


class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(CamelModel):
    """Tokens plus the authenticated user, returned by register and login."""
    message: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse
    free_credits_granted: bool = False


class RefreshRequest(BaseModel):
    refresh_token: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6, max_length=100)


class CreditsResponse(CamelModel):
    points: int
    has_received_free_credits: bool


class FreeCreditsResponse(CamelModel):
    message: str
    points_added: int
    total_points: int


class CreditTransactionResponse(CamelModel):
    id: int
    amount: int
    reason: CreditReason
    reference: str | None
    created_at: datetime | None = None


class TransactionListResponse(CamelModel):
    transactions: list[CreditTransactionResponse]
    pagination: Pagination
