"""FastAPI application exposing the script workspace over HTTP.

WHY: The workspace was designed as a single-page tool: upload a video,
read the transcript, generate a script, voice it section by section or
as a zip. Any front end (a web page, curl, n8n) can drive the same flow
through these endpoints, and FastAPI provides OpenAPI documentation and
request validation for free.

HOW: One Workspace instance is hydrated from the state store at startup
and shared by every request through the get_workspace dependency. All
endpoints are async and run on one event loop, so workspace mutations
never interleave mid-update. Each mutating endpoint returns the full
workspace state afterwards.

RULES:
- Operation failures are reported in the returned state, not as HTTP errors
- Unknown section ids are 404 at the HTTP layer (the workspace itself
  ignores them)
- Export with no sections is 409
- The uploaded file is kept in a temp directory only for the duration
  of the transcription call
- Python 3.9+ compatible (no match/case, no PEP 604 unions)
"""

from __future__ import annotations

import logging
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Any, Dict, Optional

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.responses import Response

from script_workspace import __version__
from script_workspace.api.client import WorkspaceClient
from script_workspace.config import DEFAULT_EXPORT_FILENAME, SERVER_HOST, SERVER_PORT
from script_workspace.core.workspace import Workspace
from script_workspace.server.models import (
    ErrorResponse,
    HealthResponse,
    WorkspaceStateResponse,
)
from script_workspace.storage import StateStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and workspace setup
# ---------------------------------------------------------------------------

_workspace: Optional[Workspace] = None

# Overridden by run_api() before the server starts
_settings: Dict[str, Any] = {"state_dir": None, "api_url": None}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the service client and hydrate the workspace once at startup."""
    global _workspace
    async with WorkspaceClient(base_url=_settings["api_url"]) as client:
        store = StateStore(_settings["state_dir"])
        _workspace = Workspace.from_store(store, client=client)
        logger.info("Workspace loaded with %d sections", len(_workspace.sections))
        yield
        _workspace = None


app = FastAPI(
    lifespan=lifespan,
    title="Script Workspace API",
    description=(
        "Transcribe a video, generate a heading-structured script from the "
        "transcript, and synthesize speech per section or as a zip archive. "
        "State is persisted between restarts."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


def get_workspace() -> Workspace:
    """Dependency returning the shared workspace."""
    if _workspace is None:
        raise HTTPException(status_code=503, detail="Workspace is not loaded.")
    return _workspace


WorkspaceDep = Annotated[Workspace, Depends(get_workspace)]


def _state_response(workspace: Workspace) -> WorkspaceStateResponse:
    """Convert the live Workspace into a WorkspaceStateResponse."""
    return WorkspaceStateResponse(
        transcript=workspace.transcript,
        transcribed_audio_url=workspace.transcribed_audio_url,
        last_uploaded_file_name=workspace.last_uploaded_file_name,
        sections=[section.model_copy() for section in workspace.sections],
        batch_zip_url=workspace.batch_zip_url,
        is_transcribing=workspace.is_transcribing,
        transcribe_error=workspace.transcribe_error,
        upload_progress=workspace.upload_progress,
        transcribe_status_label=workspace.transcribe_status_label,
        is_generating=workspace.is_generating,
        generate_error=workspace.generate_error,
        is_batching=workspace.is_batching,
        batch_error=workspace.batch_error,
    )


# ---------------------------------------------------------------------------
# Endpoints: Workspace
# ---------------------------------------------------------------------------


@app.get(
    "/workspace",
    response_model=WorkspaceStateResponse,
    tags=["workspace"],
    summary="Get the workspace state",
    description="Returns the transcript, sections, locators, and in-flight flags.",
)
async def get_state(workspace: WorkspaceDep) -> WorkspaceStateResponse:
    return _state_response(workspace)


@app.post(
    "/workspace/transcribe",
    response_model=WorkspaceStateResponse,
    tags=["workspace"],
    summary="Upload a video and transcribe it",
    description=(
        "Uploads the media file to the transcription service. Starts a new "
        "session: existing sections and the batch archive are cleared."
    ),
)
async def transcribe(
    workspace: WorkspaceDep,
    file: Annotated[UploadFile, File(description="Video or audio file to transcribe")],
) -> WorkspaceStateResponse:
    # Sanitize filename to prevent path traversal
    filename = Path(file.filename or "upload").name
    with tempfile.TemporaryDirectory(prefix="script_workspace_") as tmp_dir:
        input_path = Path(tmp_dir) / filename
        input_path.write_bytes(await file.read())
        await workspace.transcribe(input_path, filename=filename)
    return _state_response(workspace)


@app.post(
    "/workspace/generate",
    response_model=WorkspaceStateResponse,
    tags=["workspace"],
    summary="Generate the script from the transcript",
    description="Generates a markdown script and replaces all sections with its chapters.",
)
async def generate(workspace: WorkspaceDep) -> WorkspaceStateResponse:
    await workspace.generate()
    return _state_response(workspace)


@app.post(
    "/workspace/sections/{section_id}/synthesize",
    response_model=WorkspaceStateResponse,
    tags=["sections"],
    summary="Synthesize speech for one section",
    description="Synthesizes the section body; the result lands on that section only.",
    responses={
        404: {"model": ErrorResponse, "description": "Section not found"},
    },
)
async def synthesize_section(section_id: str, workspace: WorkspaceDep) -> WorkspaceStateResponse:
    if workspace.get_section(section_id) is None:
        raise HTTPException(status_code=404, detail="Section not found: {}".format(section_id))
    await workspace.synthesize_section(section_id)
    return _state_response(workspace)


@app.post(
    "/workspace/batch",
    response_model=WorkspaceStateResponse,
    tags=["sections"],
    summary="Synthesize all sections into a zip archive",
    description="Sends every non-empty section body in one request.",
)
async def batch_synthesize(workspace: WorkspaceDep) -> WorkspaceStateResponse:
    await workspace.batch_synthesize()
    return _state_response(workspace)


@app.get(
    "/workspace/script.txt",
    tags=["sections"],
    summary="Download the script as plain text",
    description="Chapters numbered in order, separated by blank lines.",
    responses={
        409: {"model": ErrorResponse, "description": "No sections to export"},
    },
)
async def download_script(workspace: WorkspaceDep) -> Response:
    text = workspace.export_script()
    if text is None:
        raise HTTPException(status_code=409, detail=workspace.batch_error or "")
    return Response(
        content=text.encode("utf-8"),
        media_type="text/plain; charset=utf-8",
        headers={
            "Content-Disposition": 'attachment; filename="{}"'.format(DEFAULT_EXPORT_FILENAME)
        },
    )


@app.delete(
    "/workspace",
    status_code=204,
    tags=["workspace"],
    summary="Reset the workspace",
    description="Clears the transcript, sections, locators, and the saved state.",
)
async def reset(workspace: WorkspaceDep) -> Response:
    workspace.reset()
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for load balancers and orchestrators.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api(
    host: Optional[str] = None,
    port: Optional[int] = None,
    state_dir: Optional[str] = None,
    api_url: Optional[str] = None,
) -> None:
    """Entry point for the script-workspace-api console script."""
    import uvicorn
    _settings["state_dir"] = state_dir
    _settings["api_url"] = api_url
    uvicorn.run(app, host=host or SERVER_HOST, port=port or SERVER_PORT)
