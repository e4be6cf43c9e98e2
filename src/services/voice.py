"""
Text-to-speech with edge-tts.

Speaking state lives on the VoiceService instance. Starting a new
utterance stops the current one first, so at most one is in flight.
Audio is streamed chunk by chunk to a sink supplied by the caller
(a player, a file, a websocket).
"""

import asyncio
from typing import Awaitable, Callable, Optional

import edge_tts
import structlog

from src.config import VoiceSettings

logger = structlog.get_logger(__name__)

AudioSink = Callable[[bytes], Awaitable[None]]


class VoiceService:
    """
    Speaks assistant replies with a Microsoft Edge neural voice.

    Voice, rate and pitch come from VoiceSettings. `speak` streams audio
    to the sink and returns when playback is done or `stop` cancels it.
    """

    def __init__(
        self,
        settings: Optional[VoiceSettings] = None,
        communicate_factory: Callable[..., "edge_tts.Communicate"] = edge_tts.Communicate,
    ):
        self._settings = settings or VoiceSettings()
        self._communicate_factory = communicate_factory
        self._task: Optional[asyncio.Task] = None
        self._speaking = False

    @property
    def is_speaking(self) -> bool:
        return self._speaking

    async def _stream(self, text: str, sink: AudioSink) -> None:
        communicate = self._communicate_factory(
            text,
            self._settings.voice,
            rate=self._settings.rate,
            pitch=self._settings.pitch,
        )
        async for chunk in communicate.stream():
            if chunk.get("type") == "audio":
                await sink(chunk["data"])

    async def speak(self, text: str, sink: AudioSink) -> None:
        """
        Synthesize `text` and feed the audio to `sink`.

        Returns when speech finishes or is stopped. Synthesis errors
        are logged and re-raised.
        """
        await self.stop()
        if not text.strip():
            return

        task = asyncio.create_task(self._stream(text, sink))
        self._task = task
        self._speaking = True
        try:
            await task
        except asyncio.CancelledError:
            # stop() cancelled us; the caller itself was not cancelled
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
        except Exception as e:
            logger.error("speech_error", error=str(e))
            raise
        finally:
            if self._task is task:
                self._speaking = False
                self._task = None

    async def stop(self) -> None:
        """Cancel the current utterance, if any."""
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._speaking = False

    async def list_voices(self) -> list[dict]:
        """Voices edge-tts can use; empty on failure."""
        try:
            return await edge_tts.list_voices()
        except Exception as e:
            logger.error("list_voices_failed", error=str(e))
            return []
