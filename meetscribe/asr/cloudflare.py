"""
CloudflareWhisperEngine: Whisper via Cloudflare Workers AI.

Sends the WAV bytes as-is; the API returns plain text without usable segment
boundaries, so each recording becomes one segment spanning the whole file.
Runs HTTP call in executor to avoid blocking event loop.
"""
from __future__ import annotations

import asyncio
import logging
import os
import wave

import httpx

from meetscribe.asr.base import Segment, TranscriptionEngine, clean_segments
from meetscribe.config import get_settings

logger = logging.getLogger(__name__)

_WHISPER_MODEL = "@cf/openai/whisper"


def _wav_duration(path: str) -> float:
    with wave.open(path, "rb") as wf:
        rate = wf.getframerate() or 1
        return wf.getnframes() / float(rate)


def _result_text(data: dict) -> str:
    # Workers AI returns { "result": { "text": "..." } } or the result object directly
    result = data.get("result", data)
    if isinstance(result, dict):
        text = result.get("text", result.get("transcript", ""))
    elif isinstance(result, str):
        text = result
    else:
        text = ""
    return (text or "").strip()


class CloudflareWhisperEngine(TranscriptionEngine):
    """
    Remote Whisper via Cloudflare Workers AI.
    async transcribe() runs HTTP in executor; vad is not supported by the API and is ignored.
    """

    def __init__(
        self,
        account_id: str | None = None,
        api_token: str | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 120.0,
    ) -> None:
        settings = get_settings()
        self._account_id = (account_id if account_id is not None else settings.CLOUDFLARE_ACCOUNT_ID).strip()
        self._token = (api_token if api_token is not None else settings.CLOUDFLARE_API_TOKEN).strip()
        self._transport = transport
        self._timeout = timeout

    def _transcribe_sync(self, wav_path: str) -> list[Segment]:
        """Blocking HTTP call; run in executor."""
        if not self._account_id or not self._token:
            raise RuntimeError("CLOUDFLARE_ACCOUNT_ID and CLOUDFLARE_API_TOKEN are required for ASR_BACKEND=cloudflare")
        if not os.path.isfile(wav_path):
            raise FileNotFoundError(wav_path)

        duration = _wav_duration(wav_path)
        with open(wav_path, "rb") as f:
            audio = f.read()

        url = f"https://api.cloudflare.com/client/v4/accounts/{self._account_id}/ai/run/{_WHISPER_MODEL}"
        headers = {"Authorization": f"Bearer {self._token}"}
        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            resp = client.post(url, headers=headers, json={"audio": list(audio)})
        if resp.status_code != 200:
            raise RuntimeError(f"Workers AI whisper returned HTTP {resp.status_code} for {wav_path}")

        text = _result_text(resp.json())
        logger.debug("Workers AI transcribed %s: %d chars", wav_path, len(text))
        return clean_segments([Segment(start=0.0, end=duration, text=text)])

    async def transcribe(self, wav_path: str, vad: bool = False) -> list[Segment]:
        """Run HTTP in executor. vad ignored (one pass, no gating)."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._transcribe_sync, wav_path)
