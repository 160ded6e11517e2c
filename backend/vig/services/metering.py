"""Credit-metered generation flow shared by the TTS and caption features."""
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vig.config import get_settings
from vig.errors import ConfigurationError, PaymentRequired, ServiceUnavailable
from vig.models.artifact import Artifact
from vig.models.generation import Generation, GenerationKind, GenerationStatus
from vig.models.user import User
from vig.services.artifact_service import ArtifactService
from vig.services.credit_service import CreditService

settings = get_settings()
logger = logging.getLogger(__name__)


class MeteredGeneration:
    """One metered operation for one user.

    Usage order: `ensure_balance()`, input validation, `ensure_configured()`,
    provider call (`fail()` on error), `succeed()`, then `charge()`.
    """

    def __init__(self, db: AsyncSession, user: User, kind: GenerationKind):
        self.db = db
        self.user = user
        self.kind = kind
        self.cost = settings.points_per_generation
        self.credits = CreditService(db)
        self.artifacts = ArtifactService(db)

    def ensure_balance(self) -> None:
        """Reject before anything else happens when the user cannot pay."""
        if self.user.points < self.cost:
            raise PaymentRequired()

    @staticmethod
    def ensure_configured(value: str | bool, config_key: str, message: str) -> None:
        if not value:
            raise ConfigurationError(config_key, message)

    async def fail(self, exc: Exception, message: str, **fields: Any) -> ServiceUnavailable:
        """Record a failed attempt and build the error to raise; the balance is untouched."""
        points = self.user.points
        self.db.add(
            Generation(
                user_id=self.user.id,
                kind=self.kind,
                status=GenerationStatus.FAILED,
                error_message=str(exc)[:2000],
                **fields,
            )
        )
        try:
            await self.db.commit()
        except SQLAlchemyError:
            logger.exception("Failed to record failed %s generation for user %s", self.kind.value, self.user.id)
            await self.db.rollback()

        return ServiceUnavailable(
            message,
            details=str(exc),
            extra={"pointsRemaining": points},
        )

    async def succeed(
        self,
        artifact_content: bytes | None = None,
        ext: str = "",
        media_type: str = "application/octet-stream",
        **fields: Any,
    ) -> tuple[Generation, Artifact | None]:
        """Persist the artifact (if any) and a completed generation record."""
        artifact = None
        if artifact_content is not None:
            artifact = await self.artifacts.create(
                user_id=self.user.id,
                kind=self.kind.value,
                content=artifact_content,
                ext=ext,
                media_type=media_type,
            )

        generation = Generation(
            user_id=self.user.id,
            kind=self.kind,
            status=GenerationStatus.COMPLETED,
            artifact_name=artifact.name if artifact else None,
            **fields,
        )
        self.db.add(generation)
        await self.db.flush()
        await self.db.refresh(generation)
        await self.db.commit()
        return generation, artifact

    async def charge(self, generation: Generation, artifact: Artifact | None = None) -> int:
        """
        Debit the user once for a successful generation.

        A concurrent request that drained the balance first means this result is
        not paid for: the artifact is discarded and PaymentRequired is raised.
        A storage failure while debiting is logged and the last known balance
        returned, since the generation itself already succeeded.
        """
        reference = f"generation:{generation.id}"
        last_known = self.user.points
        try:
            remaining = await self.credits.debit(self.user.id, self.cost, reference=reference)
            if remaining is not None:
                await self.db.commit()
                return remaining
        except SQLAlchemyError:
            logger.exception(
                "Failed to deduct %s point(s) from user %s for %s",
                self.cost, self.user.id, reference,
            )
            await self.db.rollback()
            return last_known

        logger.warning("Balance of user %s drained concurrently; discarding %s", self.user.id, reference)
        generation.status = GenerationStatus.FAILED
        generation.error_message = "Insufficient points at charge time"
        if artifact is not None:
            await self.artifacts.discard(artifact)
            generation.artifact_name = None
        await self.db.commit()
        raise PaymentRequired()
