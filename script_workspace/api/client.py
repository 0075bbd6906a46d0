"""Async HTTP client for the transcription / script / speech service.

WHY: The workspace chains four remote operations: transcribe an uploaded
video, generate a script from the transcript, synthesize one section, and
synthesize a batch into a zip archive. This module encapsulates the HTTP
details behind a single client class so callers (workspace, CLI, API,
tests) only see typed results and one exception type.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. WorkspaceClient is an
async context manager; enter it to get a configured client, exit to
close the connection pool. The upload streams the file through a small
reader wrapper that reports how much of the body has been sent.

RULES:
- Always use the async context manager (async with WorkspaceClient() as client:)
- Non-2xx responses raise ApiError with the service's "error" text when
  present, else a generic "HTTP {status}" message
- 2xx responses missing a required field raise ApiError(unexpected response)
- Transport failures (connect errors, timeouts) raise ApiError(network error)
  with no status code
- Upload progress is reported as a float in [0, 100], or None when the
  body size is unknown; 100 is reported once the upload succeeds
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, BinaryIO, List, Optional

import httpx

from script_workspace.api.models import (
    BatchTtsResult,
    ScriptGenerationResult,
    TextToSpeechResult,
    TranscriptionResult,
)
from script_workspace.config import (
    API_BASE_URL,
    CONNECT_TIMEOUT_S,
    MSG_NETWORK_ERROR,
    MSG_SERVER_ERROR,
    MSG_UNEXPECTED_RESPONSE,
    REQUEST_TIMEOUT_S,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Optional[float]], None]


class ApiError(Exception):
    """Raised when a remote operation does not complete successfully.

    WHY: Callers store failures as user-facing messages. A typed
    exception carrying exactly that message (and the HTTP status when
    there was one) keeps raw transport errors out of the UI.

    RULES:
    - message is always human-readable
    - status_code is None for transport failures
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class _ProgressReader:
    """Binary file wrapper that reports read progress to a callback."""

    def __init__(self, fileobj: BinaryIO, total: int, on_progress: ProgressCallback) -> None:
        self._file = fileobj
        self._total = total
        self._on_progress = on_progress
        self._sent = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._file.read(size)
        if chunk:
            self._sent += len(chunk)
            if self._total > 0:
                self._on_progress(min(100.0, max(0.0, self._sent / self._total * 100)))
            else:
                self._on_progress(None)
        return chunk

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        position = self._file.seek(offset, whence)
        self._sent = self._file.tell()
        return position

    def tell(self) -> int:
        return self._file.tell()

    def fileno(self) -> int:
        return self._file.fileno()


class WorkspaceClient:
    """Async client for the script service.

    WHY: Provides a clean, typed interface for the four collaborator
    operations and a single error contract (ApiError) for all of them.

    HOW: Wraps httpx.AsyncClient. Use as an async context manager to
    ensure the HTTP connection pool is properly closed.

    RULES:
    - Use as: async with WorkspaceClient() as client: ...
    - base_url defaults to API_BASE_URL from config
    - transport is for tests (e.g. httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = (base_url or API_BASE_URL).rstrip("/")
        self._timeout = timeout or REQUEST_TIMEOUT_S
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> WorkspaceClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout, connect=CONNECT_TIMEOUT_S),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "WorkspaceClient must be used as an async context manager: "
                "async with WorkspaceClient() as client: ..."
            )
        return self._client

    # ------------------------------------------------------------------
    # Transcribe
    # ------------------------------------------------------------------

    async def transcribe(
        self,
        file_path: Path,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TranscriptionResult:
        """Upload a media file and return its transcript and audio locator.

        Args:
            file_path: Path to the video/audio file to upload.
            on_progress: Optional callback receiving upload percent
                (0-100) or None when the size is unknown.

        Returns:
            TranscriptionResult with the transcript text and audio_url.
        """
        client = self._ensure_client()
        file_path = Path(file_path)
        total = file_path.stat().st_size

        with open(file_path, "rb") as f:
            upload: Any = f
            if on_progress is not None:
                upload = _ProgressReader(f, total, on_progress)
            try:
                resp = await client.post(
                    "/transcribe",
                    files={"file": (file_path.name, upload)},
                )
            except httpx.HTTPError as exc:
                logger.warning("Transcription upload failed: %s", exc)
                raise ApiError(MSG_NETWORK_ERROR) from exc

        data = _ensure_ok(resp)
        result = TranscriptionResult.from_dict(data)
        if result is None:
            raise ApiError(MSG_UNEXPECTED_RESPONSE, resp.status_code)

        if on_progress is not None:
            on_progress(100.0)
        return result

    # ------------------------------------------------------------------
    # Generate / synthesize
    # ------------------------------------------------------------------

    async def generate_script(self, prompt: str) -> ScriptGenerationResult:
        """Generate a markdown script from a transcript prompt."""
        resp = await self._post_json("/generate", {"prompt": prompt})
        result = ScriptGenerationResult.from_dict(_ensure_ok(resp))
        if result is None:
            raise ApiError(MSG_UNEXPECTED_RESPONSE, resp.status_code)
        return result

    async def synthesize_speech(self, text: str) -> TextToSpeechResult:
        """Synthesize one text and return the audio locator."""
        resp = await self._post_json("/tts", {"text": text})
        result = TextToSpeechResult.from_dict(_ensure_ok(resp))
        if result is None:
            raise ApiError(MSG_UNEXPECTED_RESPONSE, resp.status_code)
        return result

    async def batch_synthesize_to_zip(self, text_list: List[str]) -> BatchTtsResult:
        """Synthesize every text in one request and return the archive locator."""
        resp = await self._post_json("/batch_tts_to_zip", {"text_list": list(text_list)})
        result = BatchTtsResult.from_dict(_ensure_ok(resp))
        if result is None:
            raise ApiError(MSG_UNEXPECTED_RESPONSE, resp.status_code)
        return result

    async def _post_json(self, path: str, payload: dict) -> httpx.Response:
        client = self._ensure_client()
        try:
            return await client.post(path, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("POST %s failed: %s", path, exc)
            raise ApiError(MSG_NETWORK_ERROR) from exc


# ---------------------------------------------------------------------------
# Response helpers (module-private)
# ---------------------------------------------------------------------------


def _parse_json(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


def _ensure_ok(resp: httpx.Response) -> Any:
    """Return the decoded JSON body of a 2xx response or raise ApiError.

    RULES:
    - 2xx: decoded JSON (None if the body is not JSON)
    - otherwise: ApiError with the body's "error" string when present,
      else "サーバーエラーが発生しました (HTTP {status})"
    """
    if resp.is_success:
        return _parse_json(resp)

    payload = _parse_json(resp)
    error = payload.get("error") if isinstance(payload, dict) else None
    message = error if isinstance(error, str) and error else MSG_SERVER_ERROR.format(
        status=resp.status_code
    )
    logger.warning("Service returned HTTP %s: %s", resp.status_code, message)
    raise ApiError(message, resp.status_code)
