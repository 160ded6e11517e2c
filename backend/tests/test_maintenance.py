"""Tests for transient artifact expiry."""
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update

from vig.database import async_session_maker
from vig.models.artifact import Artifact
from vig.services.artifact_service import ArtifactService
from vig.tasks.maintenance import purge_expired_artifacts
from vig.utils.storage import storage


async def create_artifact(user_id: int, content: bytes = b"data") -> Artifact:
    async with async_session_maker() as db:
        artifact = await ArtifactService(db).create(
            user_id=user_id, kind="tts", content=content, ext=".mp3", media_type="audio/mpeg"
        )
        await db.commit()
        return artifact


async def expire(artifact_id: int) -> None:
    async with async_session_maker() as db:
        await db.execute(
            update(Artifact)
            .where(Artifact.id == artifact_id)
            .values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
        )
        await db.commit()


async def test_purge_removes_only_expired_artifacts(make_user):
    user_id = await make_user()
    stale = await create_artifact(user_id)
    fresh = await create_artifact(user_id)
    await expire(stale.id)

    result = await purge_expired_artifacts()

    assert result["deleted_artifacts"] == 1
    assert result["deleted_files"] == 1
    assert not (storage.base_dir / stale.file_path).exists()
    assert (storage.base_dir / fresh.file_path).exists()
    async with async_session_maker() as db:
        names = (await db.scalars(select(Artifact.name))).all()
    assert names == [fresh.name]


async def test_expired_artifact_is_not_served(client, make_user, auth_headers):
    user_id = await make_user()
    artifact = await create_artifact(user_id)
    await expire(artifact.id)

    response = await client.get(f"/api/audio/stream/{artifact.name}", headers=auth_headers(user_id))

    assert response.status_code == 404


async def test_download_shortens_expiry_to_grace_window(client, make_user, auth_headers):
    user_id = await make_user()
    artifact = await create_artifact(user_id)

    response = await client.get(f"/api/audio/download/{artifact.name}", headers=auth_headers(user_id))

    assert response.status_code == 200
    async with async_session_maker() as db:
        remaining = await db.scalar(
            select(Artifact.id).where(
                Artifact.id == artifact.id,
                Artifact.expires_at <= datetime.now(timezone.utc) + timedelta(minutes=10),
            )
        )
    assert remaining == artifact.id


async def test_purge_with_nothing_expired(make_user):
    await make_user()

    result = await purge_expired_artifacts()

    assert result["deleted_artifacts"] == 0
