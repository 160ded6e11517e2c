"""Shared test fixtures: SQLite database, ASGI client, fake providers."""
import hashlib
import hmac
import os
import tempfile
import time
from pathlib import Path

_TMP_DIR = tempfile.mkdtemp(prefix="vig-tests-")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/test.db"
os.environ["ARTIFACT_DIR"] = f"{_TMP_DIR}/artifacts"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DEBUG"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ELEVENLABS_API_KEY"] = "test-elevenlabs-key"
os.environ["DEEPGRAM_API_KEY"] = "test-deepgram-key"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_123"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"

import httpx  # noqa: E402
import pytest  # noqa: E402
import stripe  # noqa: E402
from sqlalchemy import select  # noqa: E402

from vig.api.deps import (  # noqa: E402
    get_deepgram_client,
    get_elevenlabs_client,
    get_stripe_gateway,
    get_subtitle_burner,
)
from vig.database import Base, async_session_maker, engine  # noqa: E402
from vig.main import app  # noqa: E402
from vig.models.user import User, UserRole  # noqa: E402
from vig.services.media import MediaProcessingError  # noqa: E402
from vig.services.providers import ProviderError  # noqa: E402
from vig.services.providers.models import Transcript  # noqa: E402
from vig.services.stripe_gateway import StripeGateway  # noqa: E402
from vig.utils.security import create_access_token, get_password_hash  # noqa: E402

WEBHOOK_SECRET = "whsec_test_secret"
DEFAULT_PASSWORD = "secret123"

LISTEN_RESPONSE = {
    "results": {
        "channels": [
            {
                "detected_language": "en",
                "alternatives": [
                    {
                        "transcript": "Hello there. This is a caption test for the video.",
                        "confidence": 0.97,
                        "words": [
                            {"word": "hello", "punctuated_word": "Hello", "start": 0.0, "end": 0.4},
                            {"word": "there", "punctuated_word": "there.", "start": 0.4, "end": 0.8},
                            {"word": "this", "punctuated_word": "This", "start": 1.0, "end": 1.2},
                            {"word": "is", "punctuated_word": "is", "start": 1.2, "end": 1.3},
                            {"word": "a", "punctuated_word": "a", "start": 1.3, "end": 1.4},
                            {"word": "caption", "punctuated_word": "caption", "start": 1.4, "end": 1.9},
                            {"word": "test", "punctuated_word": "test", "start": 1.9, "end": 2.2},
                            {"word": "for", "punctuated_word": "for", "start": 2.2, "end": 2.4},
                            {"word": "the", "punctuated_word": "the", "start": 2.4, "end": 2.5},
                            {"word": "video", "punctuated_word": "video.", "start": 2.5, "end": 3.1},
                        ],
                        "paragraphs": {
                            "paragraphs": [
                                {
                                    "start": 0.0,
                                    "end": 3.1,
                                    "sentences": [
                                        {"text": "Hello there.", "start": 0.0, "end": 0.8},
                                        {"text": "This is a caption test for the video.", "start": 1.0, "end": 3.1},
                                    ],
                                }
                            ]
                        },
                    }
                ],
            }
        ]
    }
}


class FakeElevenLabs:
    def __init__(self):
        self.configured = True
        self.error: Exception | None = None
        self.audio = b"ID3\x03fake-mp3-audio"
        self.voices = [{"voice_id": "voice-1", "name": "Test Voice", "category": "cloned"}]
        self.calls: list[dict] = []

    async def synthesize(self, text: str, voice_id: str, model_id: str) -> bytes:
        self.calls.append({"text": text, "voice_id": voice_id, "model_id": model_id})
        if self.error:
            raise self.error
        return self.audio

    async def list_voices(self) -> list[dict]:
        if self.error:
            raise self.error
        return self.voices


class FakeDeepgram:
    def __init__(self):
        self.configured = True
        self.error: Exception | None = None
        self.response = LISTEN_RESPONSE
        self.calls: list[dict] = []

    async def transcribe(self, content: bytes, content_type: str, language: str) -> Transcript:
        self.calls.append({"size": len(content), "content_type": content_type, "language": language})
        if self.error:
            raise self.error
        return Transcript.from_listen_response(self.response)


class FakeBurner:
    def __init__(self):
        self.error: Exception | None = None
        self.srt: str | None = None
        self.force_style: str | None = None

    async def burn(self, input_path: Path, srt_path: Path, output_path: Path, force_style: str) -> Path:
        self.srt = srt_path.read_text(encoding="utf-8")
        self.force_style = force_style
        if self.error:
            raise self.error
        output_path.write_bytes(b"fake-mp4-with-captions")
        return output_path


class FakeStripeGateway(StripeGateway):
    """Keeps sessions in memory; webhook verification is the real Stripe code."""

    def __init__(self):
        super().__init__(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)
        self.sessions: dict[str, dict] = {}
        self.created: list[dict] = []

    async def create_checkout_session(self, idempotency_key=None, **params):
        session_id = f"cs_test_{len(self.sessions) + 1}"
        line_item = params["line_items"][0]["price_data"]
        session = {
            "id": session_id,
            "url": f"https://checkout.stripe.test/{session_id}",
            "payment_status": "unpaid",
            "amount_total": line_item["unit_amount"],
            "currency": line_item["currency"],
            "metadata": dict(params["metadata"]),
        }
        self.sessions[session_id] = session
        self.created.append({"idempotency_key": idempotency_key, **params})
        return session

    async def retrieve_checkout_session(self, session_id: str):
        if session_id not in self.sessions:
            raise stripe.InvalidRequestError(
                f"No such checkout.session: '{session_id}'", "id", code="resource_missing"
            )
        return self.sessions[session_id]

    def add_paid_session(self, user_id: int, points: int, session_id: str = "cs_test_paid") -> str:
        self.sessions[session_id] = {
            "id": session_id,
            "url": f"https://checkout.stripe.test/{session_id}",
            "payment_status": "paid",
            "amount_total": 999,
            "currency": "usd",
            "metadata": {"userId": str(user_id), "points": str(points), "nonce": "n1"},
        }
        return session_id


def sign_webhook(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Build a Stripe-Signature header the way Stripe does."""
    timestamp = int(time.time())
    signed_payload = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed_payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


@pytest.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    app.dependency_overrides.clear()
    await engine.dispose()


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user():
    async def _make_user(
        email: str = "user@example.com",
        points: int = 4,
        has_received_free_credits: bool = True,
        role: UserRole = UserRole.USER,
        password: str = DEFAULT_PASSWORD,
    ) -> int:
        async with async_session_maker() as db:
            user = User(
                email=email,
                username=email.split("@")[0],
                first_name="Test",
                last_name="User",
                hashed_password=get_password_hash(password),
                points=points,
                has_received_free_credits=has_received_free_credits,
                role=role,
            )
            db.add(user)
            await db.commit()
            return user.id

    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user_id: int) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _auth_headers


@pytest.fixture
def points_of():
    async def _points_of(user_id: int) -> int:
        async with async_session_maker() as db:
            return await db.scalar(select(User.points).where(User.id == user_id))

    return _points_of


@pytest.fixture
def elevenlabs():
    fake = FakeElevenLabs()
    app.dependency_overrides[get_elevenlabs_client] = lambda: fake
    return fake


@pytest.fixture
def deepgram():
    fake = FakeDeepgram()
    app.dependency_overrides[get_deepgram_client] = lambda: fake
    return fake


@pytest.fixture
def burner():
    fake = FakeBurner()
    app.dependency_overrides[get_subtitle_burner] = lambda: fake
    return fake


@pytest.fixture
def stripe_gateway():
    fake = FakeStripeGateway()
    app.dependency_overrides[get_stripe_gateway] = lambda: fake
    return fake


@pytest.fixture
def provider_error():
    def _provider_error(kind: str = "other") -> ProviderError:
        return ProviderError("Test", kind, "upstream failure", 500)

    return _provider_error


@pytest.fixture
def media_error():
    return MediaProcessingError("ffmpeg exited with code 1")
