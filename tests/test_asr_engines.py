"""Tests for the whisper engines, without a real model or network."""

import asyncio
import json
import wave
from types import SimpleNamespace

import httpx
import numpy as np
import pytest

from meetscribe.asr.cloudflare import CloudflareWhisperEngine
from meetscribe.asr.local_whisper import LocalWhisperEngine, load_wav, pcm_bytes_to_float32
from meetscribe.asr.base import Segment


def write_wav(path, samples, rate=16000, channels=1):
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(rate)
        wf.writeframes(np.asarray(samples, dtype=np.int16).tobytes())
    return str(path)


class FakeWhisperModel:
    def __init__(self, segments):
        self.segments = segments
        self.calls = []

    def transcribe(self, audio, **kwargs):
        self.calls.append((audio, kwargs))
        return iter(self.segments), SimpleNamespace(language="en")


class TestPcm:
    def test_mono_scaling(self):
        pcm = np.array([0, 16384, -32768], dtype=np.int16).tobytes()
        assert pcm_bytes_to_float32(pcm).tolist() == [0.0, 0.5, -1.0]

    def test_stereo_averaged(self):
        pcm = np.array([16384, 0, -16384, -16384], dtype=np.int16).tobytes()
        assert pcm_bytes_to_float32(pcm, channels=2).tolist() == [0.25, -0.5]

    def test_load_wav(self, tmp_path):
        path = write_wav(tmp_path / "a.wav", [0, 16384], rate=8000)
        audio, rate = load_wav(path)
        assert rate == 8000
        assert audio.dtype == np.float32
        assert audio.tolist() == [0.0, 0.5]


class TestLocalWhisperEngine:
    def test_segments_cleaned(self, tmp_path):
        path = write_wav(tmp_path / "mic.wav", [0] * 1600)
        model = FakeWhisperModel([
            SimpleNamespace(start=0.0, end=1.0, text=" Hello there."),
            SimpleNamespace(start=1.0, end=2.0, text="  "),
        ])
        engine = LocalWhisperEngine(model=model, beam_size=2)
        segments = asyncio.run(engine.transcribe(path, vad=True))
        assert segments == [Segment(0.0, 1.0, "Hello there.")]
        _, kwargs = model.calls[0]
        assert kwargs["beam_size"] == 2
        assert kwargs["vad_filter"] is True
        assert kwargs["condition_on_previous_text"] is False

    def test_no_model(self, tmp_path):
        path = write_wav(tmp_path / "mic.wav", [0] * 16)
        with pytest.raises(RuntimeError, match="not loaded"):
            asyncio.run(LocalWhisperEngine().transcribe(path))


class TestCloudflareWhisperEngine:
    def test_posts_audio_and_returns_one_segment(self, tmp_path):
        path = write_wav(tmp_path / "speaker.wav", [0] * 32000)
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"result": {"text": " Sounds good. "}, "success": True})

        engine = CloudflareWhisperEngine("acct", "tok", transport=httpx.MockTransport(handler))
        segments = asyncio.run(engine.transcribe(path))
        assert segments == [Segment(0.0, 2.0, "Sounds good.")]
        assert seen["url"].endswith("/accounts/acct/ai/run/@cf/openai/whisper")
        assert seen["auth"] == "Bearer tok"
        assert isinstance(seen["body"]["audio"], list)

    def test_empty_text_gives_no_segments(self, tmp_path):
        path = write_wav(tmp_path / "speaker.wav", [0] * 160)
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"result": {"text": ""}}))
        engine = CloudflareWhisperEngine("acct", "tok", transport=transport)
        assert asyncio.run(engine.transcribe(path)) == []

    def test_http_error(self, tmp_path):
        path = write_wav(tmp_path / "speaker.wav", [0] * 160)
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
        engine = CloudflareWhisperEngine("acct", "tok", transport=transport)
        with pytest.raises(RuntimeError, match="HTTP 500"):
            asyncio.run(engine.transcribe(path))

    def test_missing_credentials(self, tmp_path):
        path = write_wav(tmp_path / "speaker.wav", [0] * 160)
        with pytest.raises(RuntimeError, match="CLOUDFLARE_ACCOUNT_ID"):
            asyncio.run(CloudflareWhisperEngine("", "").transcribe(path))
