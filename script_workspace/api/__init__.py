"""Collaborator client package: async HTTP interface to the script service.

WHY: The workspace needs to upload media for transcription, generate a
script from the transcript, and synthesize speech per section or as a
zipped batch. This package encapsulates all of that communication behind
one async client class.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. WorkspaceClient has
one method per remote operation. Success payloads are parsed into typed
dataclasses defined in models.py; every failure becomes an ApiError.

RULES:
- All HTTP calls go through WorkspaceClient (no direct httpx usage elsewhere)
- No retries or backoff; the first failure is reported
"""

from script_workspace.api.client import ApiError, WorkspaceClient
from script_workspace.api.models import (
    BatchTtsResult,
    ScriptGenerationResult,
    TextToSpeechResult,
    TranscriptionResult,
)

__all__ = [
    "ApiError",
    "BatchTtsResult",
    "ScriptGenerationResult",
    "TextToSpeechResult",
    "TranscriptionResult",
    "WorkspaceClient",
]
