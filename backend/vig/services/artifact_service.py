"""Transient artifact store backed by local files and an expiry index."""
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vig.config import get_settings
from vig.errors import NotFound
from vig.models.artifact import Artifact
from vig.utils.storage import StorageService, storage

settings = get_settings()
logger = logging.getLogger(__name__)


class ArtifactService:
    """Creates, resolves and expires generated artifacts."""

    def __init__(self, db: AsyncSession, store: StorageService | None = None):
        self.db = db
        self.store = store or storage

    async def create(
        self,
        user_id: int,
        kind: str,
        content: bytes,
        ext: str,
        media_type: str,
    ) -> Artifact:
        """Write `content` under a fresh unguessable name and index it with a TTL."""
        name = self.store.generate_name(kind, user_id, ext)
        relative_path = await self.store.save_file(content, name, subfolder=kind)

        artifact = Artifact(
            name=name,
            user_id=user_id,
            kind=kind,
            media_type=media_type,
            file_path=relative_path,
            size_bytes=len(content),
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=settings.artifact_ttl_minutes),
        )
        self.db.add(artifact)
        await self.db.flush()
        return artifact

    async def get_for_user(self, name: str, user_id: int, not_found_message: str = "File not found") -> tuple[Artifact, Path]:
        """Resolve a live artifact owned by `user_id` to its file path."""
        artifact = await self.db.scalar(
            select(Artifact).where(
                Artifact.name == name,
                Artifact.user_id == user_id,
                Artifact.expires_at > datetime.now(timezone.utc),
            )
        )
        if artifact is None:
            raise NotFound(not_found_message)

        try:
            path = self.store.get_absolute_path(artifact.file_path)
        except ValueError:
            raise NotFound(not_found_message)
        if not path.is_file():
            raise NotFound(not_found_message)

        return artifact, path

    async def mark_downloaded(self, artifact: Artifact) -> None:
        """Shorten the artifact's lifetime to the post-download grace window."""
        grace_deadline = datetime.now(timezone.utc) + timedelta(seconds=settings.artifact_download_grace_seconds)
        await self.db.execute(
            update(Artifact)
            .where(Artifact.id == artifact.id, Artifact.expires_at > grace_deadline)
            .values(expires_at=grace_deadline)
            .execution_options(synchronize_session=False)
        )

    async def discard(self, artifact: Artifact) -> None:
        await self.store.delete_file(artifact.file_path)
        await self.db.execute(delete(Artifact).where(Artifact.id == artifact.id))

    async def discard_for_user(self, user_id: int) -> int:
        """Remove every artifact a user owns, files first."""
        result = await self.db.execute(select(Artifact).where(Artifact.user_id == user_id))
        artifacts = result.scalars().all()
        for artifact in artifacts:
            await self.discard(artifact)
        if artifacts:
            logger.info("Discarded %s artifacts of user %s", len(artifacts), user_id)
        return len(artifacts)

    async def purge_expired(self, now: datetime | None = None) -> dict:
        """Delete every expired artifact file and its index row."""
        now = now or datetime.now(timezone.utc)
        result = await self.db.execute(
            select(Artifact.id, Artifact.file_path).where(Artifact.expires_at <= now)
        )
        rows = result.all()

        deleted_files = 0
        for _, file_path in rows:
            if await self.store.delete_file(file_path):
                deleted_files += 1

        artifact_ids = [row[0] for row in rows]
        if artifact_ids:
            await self.db.execute(delete(Artifact).where(Artifact.id.in_(artifact_ids)))
        await self.db.commit()

        if artifact_ids:
            logger.info("Purged %s expired artifacts (%s files)", len(artifact_ids), deleted_files)
        return {
            "cutoff": now.isoformat(),
            "deleted_artifacts": len(artifact_ids),
            "deleted_files": deleted_files,
        }
