"""Database models."""
from vig.models.user import User, UserRole
from vig.models.generation import Generation, GenerationKind, GenerationStatus
from vig.models.artifact import Artifact
from vig.models.payment import PaymentSession, PaymentStatus
from vig.models.credit_transaction import CreditTransaction, CreditReason

__all__ = [
    "User",
    "UserRole",
    "Generation",
    "GenerationKind",
    "GenerationStatus",
    "Artifact",
    "PaymentSession",
    "PaymentStatus",
    "CreditTransaction",
    "CreditReason",
]
