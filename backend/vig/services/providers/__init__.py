"""External AI provider adapters."""
from vig.services.providers.base import ProviderError
from vig.services.providers.deepgram import DeepgramClient
from vig.services.providers.elevenlabs import ElevenLabsClient

__all__ = ["ProviderError", "DeepgramClient", "ElevenLabsClient"]
