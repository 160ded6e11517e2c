"""Pydantic schemas."""
from vig.schemas.common import CamelModel, MessageResponse, Pagination
from vig.schemas.user import (
    AuthResponse,
    CreditsResponse,
    ForgotPasswordRequest,
    FreeCreditsResponse,
    ProfileUpdate,
    RefreshRequest,
    ResetPasswordRequest,
    Token,
    TransactionListResponse,
    UserAdminUpdate,
    UserLogin,
    UserRegister,
    UserResponse,
)
from vig.schemas.audio import (
    AudioItem,
    HistoryResponse,
    TTSRequest,
    TTSResponse,
    Voice,
    VoicesResponse,
)
from vig.schemas.caption import Caption, CaptionOptions, CaptionResponse
from vig.schemas.payment import (
    CheckoutRequest,
    CheckoutResponse,
    ConfirmRequest,
    ConfirmResponse,
    PaymentHistoryResponse,
    PointPack,
)

__all__ = [
    "CamelModel",
    "MessageResponse",
    "Pagination",
    "AuthResponse",
    "CreditsResponse",
    "ForgotPasswordRequest",
    "FreeCreditsResponse",
    "ProfileUpdate",
    "RefreshRequest",
    "ResetPasswordRequest",
    "Token",
    "TransactionListResponse",
    "UserAdminUpdate",
    "UserLogin",
    "UserRegister",
    "UserResponse",
    "AudioItem",
    "HistoryResponse",
    "TTSRequest",
    "TTSResponse",
    "Voice",
    "VoicesResponse",
    "Caption",
    "CaptionOptions",
    "CaptionResponse",
    "CheckoutRequest",
    "CheckoutResponse",
    "ConfirmRequest",
    "ConfirmResponse",
    "PaymentHistoryResponse",
    "PointPack",
]
