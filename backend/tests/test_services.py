"""Tests for the LLM-backed collaborators and the media helpers."""

import base64
import io
import wave
from types import SimpleNamespace
from typing import Optional

import pytest
from pydantic import ValidationError
from tenacity import wait_exponential, wait_none

from tubepilot.config import OllamaConfig
from tubepilot.models import VideoLength
from tubepilot.schemas.production import (
    OptimizedMetadata,
    ScriptOutput,
    SeriesSuggestion,
    UploadCredentials,
    UploadMetadata,
)
from tubepilot.services.llm import LLMAdapter, get_adapter
from tubepilot.services.llm.base import strip_code_fence
from tubepilot.services.llm.ollama_adapter import OllamaAdapter, schema_instruction
from tubepilot.services.llm.vertex_adapter import VertexAIAdapter
from tubepilot.services.metadata_optimizer import LLMMetadataOptimizer
from tubepilot.services.script_writer import LLMScriptGenerator, build_script_prompt
from tubepilot.services.series_strategist import LLMSeriesStrategist, build_series_prompt
from tubepilot.services.speech import GeminiSpeechSynthesizer, pcm_to_wav_data_uri
from tubepilot.services.thumbnail import GeminiThumbnailGenerator, build_thumbnail_prompt
from tubepilot.services.uploader import LoggingUploader


class _ScriptedAdapter(LLMAdapter):
    """Returns a canned schema instance and records every request."""

    def __init__(self, result):
        self.result = result
        self.requests = []

    @property
    def model_id(self) -> str:
        return "fake-llm"

    async def _complete(self, prompt, schema, temperature, system_prompt):
        self.requests.append(
            {"prompt": prompt, "schema": schema, "temperature": temperature, "system_prompt": system_prompt}
        )
        return self.result.model_dump_json()


def _inline_client(data: bytes, mime_type: Optional[str] = None):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])
    calls = []

    async def generate_content(*, model, contents, config):
        calls.append({"model": model, "contents": contents, "config": config})
        return response

    client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))
    return client, calls


# ============================================================================
# Script writer
# ============================================================================

@pytest.mark.asyncio
async def test_script_generator_keeps_requested_title():
    adapter = _ScriptedAdapter(ScriptOutput(script="Body.", title="Model Title", topic="Rust"))
    generator = LLMScriptGenerator(adapter)

    result = await generator.generate(VideoLength.LONG, topic="Rust", title="Rust - Part 2")

    assert result.title == "Rust - Part 2"
    assert result.topic == "Rust"
    assert adapter.requests[0]["schema"] is ScriptOutput
    assert '"Rust - Part 2"' in adapter.requests[0]["prompt"]


@pytest.mark.asyncio
async def test_script_generator_reports_chosen_topic_for_generic_request():
    adapter = _ScriptedAdapter(ScriptOutput(script="Body.", title="Model Title", topic="Solid-state batteries"))
    generator = LLMScriptGenerator(adapter)

    result = await generator.generate(VideoLength.SHORT)

    assert result.title == "Model Title"
    assert result.topic == "Solid-state batteries"
    assert '"a trending topic"' in adapter.requests[0]["prompt"]


@pytest.mark.asyncio
async def test_script_generator_rejects_empty_script():
    generator = LLMScriptGenerator(_ScriptedAdapter(ScriptOutput(script="  ", title="T")))

    with pytest.raises(ValueError):
        await generator.generate(VideoLength.SHORT, topic="x")


def test_script_prompt_mentions_length_and_inspiration():
    prompt = build_script_prompt("Volcanoes", VideoLength.SHORT, inspiration_url="https://yt.example/v")

    assert "1-minute" in prompt
    assert "https://yt.example/v" in prompt
    assert "do NOT copy" in prompt


# ============================================================================
# Metadata optimizer
# ============================================================================

@pytest.mark.asyncio
async def test_metadata_optimizer_prompt_and_temperature():
    metadata = OptimizedMetadata(
        optimized_title="Best Title",
        optimized_description="desc",
        optimized_tags=["a"],
        optimized_category="Education",
    )
    adapter = _ScriptedAdapter(metadata)

    result = await LLMMetadataOptimizer(adapter).optimize(
        title="Draft", description=" ", tags=[], category="Technology", script="The script."
    )

    assert result == metadata
    request = adapter.requests[0]
    assert request["temperature"] == 0.4
    assert "Original Title: Draft" in request["prompt"]
    assert "Video Script: The script." in request["prompt"]


@pytest.mark.asyncio
async def test_metadata_optimizer_rejects_empty_title():
    adapter = _ScriptedAdapter(
        OptimizedMetadata(
            optimized_title=" ", optimized_description="", optimized_tags=[], optimized_category=""
        )
    )

    with pytest.raises(ValueError):
        await LLMMetadataOptimizer(adapter).optimize(
            title="Draft", description=" ", tags=[], category="Technology", script="s"
        )


def test_comma_separated_tags_are_coerced():
    metadata = OptimizedMetadata.model_validate_json(
        '{"optimized_title": "t", "optimized_description": "d", '
        '"optimized_tags": "ai, video , ,tech", "optimized_category": "c"}'
    )

    assert metadata.optimized_tags == ["ai", "video", "tech"]
    assert metadata.suggested_upload_time is None


# ============================================================================
# Series strategist
# ============================================================================

@pytest.mark.asyncio
async def test_strategist_continues_known_playlist():
    suggestion = SeriesSuggestion(topic="More Rust", playlist="Rust", is_new_series=False)
    strategist = LLMSeriesStrategist(_ScriptedAdapter(suggestion))

    result = await strategist.suggest(["Rust", "Go"])

    assert result.is_new_series is False
    assert result.playlist == "Rust"


@pytest.mark.asyncio
async def test_strategist_unknown_playlist_becomes_new_series():
    suggestion = SeriesSuggestion(topic="Zig", playlist="Zig Deep Dive", is_new_series=False)
    strategist = LLMSeriesStrategist(_ScriptedAdapter(suggestion))

    result = await strategist.suggest(["Rust"])

    assert result.is_new_series is True
    assert result.playlist == "Zig Deep Dive"


def test_series_prompt_lists_playlists():
    assert "- Rust\n- Go" in build_series_prompt(["Rust", "Go"])
    assert "no existing series" in build_series_prompt([])


# ============================================================================
# Speech and thumbnails
# ============================================================================

def test_pcm_to_wav_data_uri():
    uri = pcm_to_wav_data_uri(b"\x00\x00" * 240)

    assert uri.startswith("data:audio/wav;base64,")
    raw = base64.b64decode(uri.split(",", 1)[1])
    with wave.open(io.BytesIO(raw)) as wav:
        assert wav.getframerate() == 24000
        assert wav.getnchannels() == 1
        assert wav.getsampwidth() == 2
        assert wav.getnframes() == 240


@pytest.mark.asyncio
async def test_speech_synthesizer_uses_voice():
    client, calls = _inline_client(b"\x01\x00" * 10)
    synthesizer = GeminiSpeechSynthesizer("gemini-2.5-flash-preview-tts", voice="Kore", client=client)

    uri = await synthesizer.synthesize("Narrate this.")

    assert uri.startswith("data:audio/wav;base64,")
    config = calls[0]["config"]
    assert config.response_modalities == ["AUDIO"]
    assert config.speech_config.voice_config.prebuilt_voice_config.voice_name == "Kore"
    assert calls[0]["contents"] == "Narrate this."


@pytest.mark.asyncio
async def test_thumbnail_generator_returns_data_uri():
    client, calls = _inline_client(b"png-bytes", "image/png")
    generator = GeminiThumbnailGenerator("gemini-2.5-flash-image", client=client)

    uri = await generator.generate("Rust", script="s", title="Rust - Part 2")

    assert uri == "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()
    assert "Rust - Part 2" in calls[0]["contents"]


@pytest.mark.asyncio
async def test_thumbnail_generator_without_image_raises():
    client, calls = _inline_client(b"")
    generator = GeminiThumbnailGenerator("gemini-2.5-flash-image", client=client)
    generator.retry_wait = wait_none()

    with pytest.raises(ValueError):
        await generator.generate("Rust")

    assert len(calls) == 3


@pytest.mark.asyncio
async def test_thumbnail_generator_retries_transient_errors():
    client, calls = _inline_client(b"png-bytes", "image/png")
    generate_content = client.aio.models.generate_content
    failures = [RuntimeError("503 unavailable")]

    async def flaky(**kwargs):
        if failures:
            raise failures.pop()
        return await generate_content(**kwargs)

    client.aio.models.generate_content = flaky
    generator = GeminiThumbnailGenerator("gemini-2.5-flash-image", max_retries=2, client=client)
    generator.retry_wait = wait_none()

    uri = await generator.generate("Rust")

    assert uri.startswith("data:image/png;base64,")
    assert len(calls) == 1


def test_thumbnail_prompt_optional_parts():
    prompt = build_thumbnail_prompt("Rust")

    assert '"Rust"' in prompt
    assert "titled" not in prompt
    assert "script" not in prompt


# ============================================================================
# Uploader
# ============================================================================

@pytest.mark.asyncio
async def test_logging_uploader_requires_credentials_and_media():
    uploader = LoggingUploader()
    metadata = UploadMetadata(title="t", description="d")

    assert await uploader.upload(UploadCredentials(api_key="", channel_id="c"), "https://v", metadata) is False
    assert await uploader.upload(UploadCredentials(api_key="k", channel_id="c"), "", metadata) is False
    assert await uploader.upload(UploadCredentials(api_key="k", channel_id="c"), "https://v", metadata) is True


# ============================================================================
# Adapter registry
# ============================================================================

def test_registry_routes_by_prefix():
    ollama = get_adapter("ollama/llama3.1", OllamaConfig(endpoint="http://ollama:11434"))
    vertex = get_adapter("gemini-2.5-flash")

    assert isinstance(ollama, OllamaAdapter)
    assert isinstance(vertex, VertexAIAdapter)
    assert vertex.model_id == "gemini-2.5-flash"


def test_strip_code_fence():
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('{"a": 1}') == '{"a": 1}'


class _RawAdapter(LLMAdapter):
    """Replays raw response strings, one per attempt."""

    retry_wait = wait_none()

    def __init__(self, *responses):
        self.responses = list(responses)
        self.attempts = 0

    @property
    def model_id(self) -> str:
        return "raw-llm"

    async def _complete(self, prompt, schema, temperature, system_prompt):
        self.attempts += 1
        return self.responses.pop(0)


@pytest.mark.asyncio
async def test_generate_text_retries_invalid_json():
    adapter = _RawAdapter("not json", "", '```json\n{"script": "Body.", "title": "T"}\n```')

    result = await adapter.generate_text("p", ScriptOutput)

    assert adapter.attempts == 3
    assert result == ScriptOutput(script="Body.", title="T")


@pytest.mark.asyncio
async def test_generate_text_raises_after_max_retries():
    adapter = _RawAdapter("{}", "{}")

    with pytest.raises(ValidationError):
        await adapter.generate_text("p", ScriptOutput, max_retries=2)

    assert adapter.attempts == 2


def test_adapters_back_off_exponentially_by_default():
    assert isinstance(LLMAdapter.retry_wait, wait_exponential)
    assert isinstance(GeminiThumbnailGenerator.retry_wait, wait_exponential)


def test_schema_instruction_embeds_json_schema():
    instruction = schema_instruction(SeriesSuggestion)

    assert '"is_new_series"' in instruction
    assert "single JSON object" in instruction
