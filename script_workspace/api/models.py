"""Typed results returned by the collaborator service.

WHY: The service answers with small JSON objects whose field names
(snake_case, e.g. "audio_url") differ from the workspace's own naming.
Typed dataclasses make each response explicit and keep key lookups in
one place.

HOW: Each dataclass maps 1:1 to one endpoint's success payload. The
from_dict factories return None when a required field is missing or is
not a string, so the client can report an "unexpected response" error
instead of a KeyError.

RULES:
- All fields are required strings
- from_dict never raises on a malformed payload; it returns None
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


def _string_field(data: Any, key: str) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    value = data.get(key)
    return value if isinstance(value, str) else None


@dataclass
class TranscriptionResult:
    """Success payload of POST /transcribe."""

    transcript: str
    audio_url: str

    @classmethod
    def from_dict(cls, data: Any) -> Optional[TranscriptionResult]:
        transcript = _string_field(data, "transcript")
        audio_url = _string_field(data, "audio_url")
        if transcript is None or audio_url is None:
            return None
        return cls(transcript=transcript, audio_url=audio_url)


@dataclass
class ScriptGenerationResult:
    """Success payload of POST /generate (markdown script text)."""

    response: str

    @classmethod
    def from_dict(cls, data: Any) -> Optional[ScriptGenerationResult]:
        response = _string_field(data, "response")
        if response is None:
            return None
        return cls(response=response)


@dataclass
class TextToSpeechResult:
    """Success payload of POST /tts."""

    audio_url: str

    @classmethod
    def from_dict(cls, data: Any) -> Optional[TextToSpeechResult]:
        audio_url = _string_field(data, "audio_url")
        if audio_url is None:
            return None
        return cls(audio_url=audio_url)


@dataclass
class BatchTtsResult:
    """Success payload of POST /batch_tts_to_zip."""

    zip_url: str

    @classmethod
    def from_dict(cls, data: Any) -> Optional[BatchTtsResult]:
        zip_url = _string_field(data, "zip_url")
        if zip_url is None:
            return None
        return cls(zip_url=zip_url)
