"""Pydantic response models for the workspace HTTP API.

WHY: The FastAPI endpoints need typed schemas for response serialization
and automatic OpenAPI documentation. The workspace state is what a
browser page would render; exposing it as one schema lets any
client (curl, a web page, n8n) render the same thing.

HOW: WorkspaceStateResponse combines the persisted snapshot fields with
the transient flags of each operation. Section entries reuse the
ScriptSection model so the camelCase wire names match the snapshot.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Operation failures are reported inside the state (the *_error fields),
  not as HTTP errors
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from script_workspace.core.models import ScriptSection


class WorkspaceStateResponse(BaseModel):
    """Full workspace state: persisted fields plus in-flight flags."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    transcript: str = Field(description="Transcript text of the last upload.")
    transcribed_audio_url: Optional[str] = Field(
        default=None,
        description="Audio locator returned with the transcript.",
    )
    last_uploaded_file_name: Optional[str] = Field(
        default=None,
        description="Name of the last uploaded media file.",
    )
    sections: List[ScriptSection] = Field(
        description="Script sections in order, with per-section synthesis state.",
    )
    batch_zip_url: Optional[str] = Field(
        default=None,
        description="Locator of the last batch synthesis archive.",
    )
    is_transcribing: bool = Field(description="A transcription is in flight.")
    transcribe_error: Optional[str] = Field(default=None, description="Last transcription failure.")
    upload_progress: Optional[int] = Field(
        default=None,
        description="Upload progress 0-100, or null when idle or indeterminate.",
    )
    transcribe_status_label: Optional[str] = Field(
        default=None,
        description="Short status label for the upload card.",
    )
    is_generating: bool = Field(description="A script generation is in flight.")
    generate_error: Optional[str] = Field(default=None, description="Last generation failure.")
    is_batching: bool = Field(description="A batch synthesis is in flight.")
    batch_error: Optional[str] = Field(
        default=None,
        description="Last batch synthesis or export failure.",
    )


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
