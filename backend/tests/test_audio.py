"""Tests for metered text-to-speech generation."""
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError

from vig.database import async_session_maker
from vig.models.artifact import Artifact
from vig.models.generation import Generation, GenerationStatus
from vig.models.user import User
from vig.services.credit_service import CreditService
from vig.utils.storage import storage


async def generate(client, headers, text="Hello world", **extra):
    return await client.post("/api/audio/generate", json={"text": text, **extra}, headers=headers)


async def test_zero_balance_is_rejected_before_provider_call(client, make_user, auth_headers, points_of, elevenlabs):
    user_id = await make_user(points=0)

    response = await generate(client, auth_headers(user_id))

    assert response.status_code == 402
    assert response.json()["errorType"] == "payment_required"
    assert elevenlabs.calls == []
    assert await points_of(user_id) == 0


async def test_zero_balance_wins_over_missing_text(client, make_user, auth_headers, elevenlabs):
    user_id = await make_user(points=0)

    response = await client.post("/api/audio/generate", json={}, headers=auth_headers(user_id))

    assert response.status_code == 402


async def test_successful_generation_charges_one_point(client, make_user, auth_headers, points_of, elevenlabs):
    user_id = await make_user(points=3)

    response = await generate(client, auth_headers(user_id), text="Hi there")

    assert response.status_code == 200
    body = response.json()
    assert body["pointsRemaining"] == 2
    assert body["audio"]["text"] == "Hi there"
    assert body["audio"]["streamUrl"].startswith("/api/audio/stream/tts_")
    assert body["audio"]["downloadUrl"].startswith("/api/audio/download/tts_")
    assert elevenlabs.calls == [
        {"text": "Hi there", "voice_id": "pNInz6obpgDQGcFmaJgB", "model_id": "eleven_monolingual_v1"}
    ]
    assert await points_of(user_id) == 2


async def test_text_at_length_limit_with_last_point(client, make_user, auth_headers, points_of, elevenlabs):
    user_id = await make_user(points=1)

    response = await generate(client, auth_headers(user_id), text="a" * 5000)

    assert response.status_code == 200
    assert response.json()["pointsRemaining"] == 0
    assert await points_of(user_id) == 0


async def test_text_over_length_limit_is_rejected(client, make_user, auth_headers, points_of, elevenlabs):
    user_id = await make_user(points=2)

    response = await generate(client, auth_headers(user_id), text="a" * 5001)

    assert response.status_code == 400
    assert elevenlabs.calls == []
    assert await points_of(user_id) == 2


async def test_blank_text_is_rejected(client, make_user, auth_headers, points_of, elevenlabs):
    user_id = await make_user(points=2)

    response = await generate(client, auth_headers(user_id), text="   ")

    assert response.status_code == 400
    assert await points_of(user_id) == 2


async def test_provider_failure_is_not_charged(
    client, make_user, auth_headers, points_of, elevenlabs, provider_error
):
    user_id = await make_user(points=3)
    elevenlabs.error = provider_error("rate_limit")

    response = await generate(client, auth_headers(user_id))

    assert response.status_code == 503
    body = response.json()
    assert body["errorType"] == "service_unavailable"
    assert body["pointsRemaining"] == 3
    assert await points_of(user_id) == 3


async def test_missing_api_key_is_a_configuration_error(client, make_user, auth_headers, points_of, elevenlabs):
    user_id = await make_user(points=3)
    elevenlabs.configured = False

    response = await generate(client, auth_headers(user_id))

    assert response.status_code == 500
    assert response.json()["errorType"] == "configuration_error"
    assert elevenlabs.calls == []
    assert await points_of(user_id) == 3


async def test_generate_requires_authentication(client, elevenlabs):
    response = await generate(client, {})

    assert response.status_code == 401


async def test_stream_and_download_generated_audio(client, make_user, auth_headers, elevenlabs):
    user_id = await make_user(points=2)
    headers = auth_headers(user_id)
    audio = (await generate(client, headers)).json()["audio"]

    stream = await client.get(audio["streamUrl"], headers=headers)
    download = await client.get(audio["downloadUrl"], headers=headers)

    assert stream.status_code == 200
    assert stream.content == elevenlabs.audio
    assert stream.headers["content-type"] == "audio/mpeg"
    assert stream.headers["accept-ranges"] == "bytes"
    assert download.status_code == 200
    assert "attachment" in download.headers["content-disposition"]

    # still reachable during the post-download grace window
    again = await client.get(audio["streamUrl"], headers=headers)
    assert again.status_code == 200


async def test_other_users_cannot_fetch_audio(client, make_user, auth_headers, elevenlabs):
    owner = await make_user(email="owner@example.com", points=2)
    other = await make_user(email="other@example.com", points=2)
    audio = (await generate(client, auth_headers(owner))).json()["audio"]

    response = await client.get(audio["streamUrl"], headers=auth_headers(other))

    assert response.status_code == 404
    assert response.json()["message"] == "Audio file not found"


async def test_unknown_audio_file_is_not_found(client, make_user, auth_headers):
    user_id = await make_user()

    response = await client.get("/api/audio/download/nope.mp3", headers=auth_headers(user_id))

    assert response.status_code == 404


async def test_history_lists_completed_and_failed_generations(
    client, make_user, auth_headers, elevenlabs, provider_error
):
    user_id = await make_user(points=3)
    headers = auth_headers(user_id)
    await generate(client, headers, text="first")
    elevenlabs.error = provider_error()
    await generate(client, headers, text="second")

    response = await client.get("/api/audio/history", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["pagination"]["total"] == 2
    by_text = {item["text"]: item for item in body["audioHistory"]}
    assert by_text["first"]["status"] == "completed"
    assert by_text["first"]["streamUrl"]
    assert by_text["second"]["status"] == "failed"
    assert by_text["second"]["streamUrl"] is None


async def test_voices_from_provider(client, elevenlabs):
    response = await client.get("/api/audio/voices")

    assert response.status_code == 200
    assert response.json()["message"] == "Voices retrieved successfully"
    assert [voice["voice_id"] for voice in response.json()["voices"]] == ["voice-1"]


async def test_voices_fall_back_when_provider_fails(client, elevenlabs, provider_error):
    elevenlabs.error = provider_error()

    response = await client.get("/api/audio/voices")

    assert response.status_code == 200
    assert response.json()["message"] == "Voices retrieved successfully (fallback)"
    assert len(response.json()["voices"]) == 5


async def test_stream_honours_range_requests(client, make_user, auth_headers, elevenlabs):
    user_id = await make_user(points=2)
    headers = auth_headers(user_id)
    audio = (await generate(client, headers)).json()["audio"]

    response = await client.get(audio["streamUrl"], headers={**headers, "Range": "bytes=0-3"})

    assert response.status_code == 206
    assert response.content == elevenlabs.audio[:4]
    assert response.headers["content-range"] == f"bytes 0-3/{len(elevenlabs.audio)}"


async def test_debit_storage_failure_still_returns_audio(
    client, make_user, auth_headers, points_of, elevenlabs, monkeypatch
):
    user_id = await make_user(points=3)

    async def failing_debit(self, *args, **kwargs):
        raise OperationalError("UPDATE users", {}, Exception("database is locked"))

    monkeypatch.setattr(CreditService, "debit", failing_debit)

    response = await generate(client, auth_headers(user_id))

    assert response.status_code == 200
    assert response.json()["pointsRemaining"] == 3
    assert response.json()["audio"]["streamUrl"]
    assert await points_of(user_id) == 3


async def test_balance_drained_during_generation_discards_result(
    client, make_user, auth_headers, points_of, elevenlabs
):
    user_id = await make_user(points=1)
    tts_dir = storage.base_dir / "tts"
    files_before = set(tts_dir.iterdir()) if tts_dir.exists() else set()
    synthesize = elevenlabs.synthesize

    async def synthesize_while_spending_elsewhere(text, voice_id, model_id):
        async with async_session_maker() as db:
            await db.execute(update(User).where(User.id == user_id).values(points=0))
            await db.commit()
        return await synthesize(text, voice_id, model_id)

    elevenlabs.synthesize = synthesize_while_spending_elsewhere

    response = await generate(client, auth_headers(user_id))

    assert response.status_code == 402
    assert await points_of(user_id) == 0
    async with async_session_maker() as db:
        artifacts = (await db.scalars(select(Artifact))).all()
        generations = (await db.execute(select(Generation.status, Generation.artifact_name))).all()
    assert artifacts == []
    assert generations == [(GenerationStatus.FAILED, None)]
    files_after = set(tts_dir.iterdir()) if tts_dir.exists() else set()
    assert files_after == files_before
