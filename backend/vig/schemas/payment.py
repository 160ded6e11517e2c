"""Payment schemas."""
from datetime import datetime

from vig.models.payment import PaymentStatus
from vig.schemas.common import CamelModel


class PointPack(CamelModel):
    points: int
    amount_cents: int
    currency: str
    label: str


class PacksResponse(CamelModel):
    packs: list[PointPack]


class CheckoutRequest(CamelModel):
    points: int | None = None


class CheckoutResponse(CamelModel):
    url: str
    session_id: str


class ConfirmRequest(CamelModel):
    session_id: str | None = None


class ConfirmResponse(CamelModel):
    message: str
    points_added: int
    total_points: int
    already_credited: bool = False


class PaymentHistoryItem(CamelModel):
    id: str
    amount: int | None
    currency: str | None
    status: PaymentStatus
    points: int
    created_at: datetime | None = None
    credited_at: datetime | None = None


class PaymentHistoryResponse(CamelModel):
    message: str
    payments: list[PaymentHistoryItem]
