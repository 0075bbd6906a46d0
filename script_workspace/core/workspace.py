"""Workspace state: sections, synthesis results, and persistence.

WHY: The workspace chains transcribe → generate → synthesize, and the
user can fire several syntheses at once, regenerate the script, or reset
while calls are still in flight. Every result must land on the section
it was issued for, or nowhere at all. Every failure must end up as a
message the user can read, and the session must survive restarts.

HOW: Workspace owns the ordered ScriptSection list plus the transient
flags of each long-running operation. Operations are coroutines run on
one event loop; all mutations happen between awaits, so no lock is
needed. Completions look their section up again by id and drop the
result if it is gone. After every state change the full snapshot is
written to the StateStore.

RULES:
- replace_sections() assigns fresh ids; ids never come from content
- Zero parsed sections keep the current sequence and set generate_error
- synthesize_section() on an unknown id is a silent no-op
- A synthesis sets is_synthesizing and clears error/audio_url before its
  first await; completion sets exactly one of audio_url or error
- batch_synthesize() never touches per-section fields
- reset() clears everything and removes the persisted key
- Failures are stored as field-scoped messages, never raised
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import List, Optional, Sequence, Union

from script_workspace.api.client import ApiError
from script_workspace.config import (
    LABEL_ERROR,
    LABEL_TRANSCRIBING,
    MSG_FILE_ERROR,
    MSG_NO_TRANSCRIPT,
    MSG_NOTHING_TO_SYNTHESIZE,
    MSG_PARSE_FAILED,
    MSG_UNKNOWN_ERROR,
)
from script_workspace.core.export import EmptyScriptError, render_script_text, save_script_text
from script_workspace.core.models import ParsedSection, ScriptSection, WorkspaceSnapshot
from script_workspace.core.parser import parse_script_markdown
from script_workspace.storage import StateStore, clear_snapshot, load_snapshot, save_snapshot

logger = logging.getLogger(__name__)


def create_section_id(index: int) -> str:
    """Return a new section id, unique within the process."""
    return "section-{}-{}".format(index, uuid.uuid4().hex)


def error_message(exc: BaseException) -> str:
    """Turn any failure into user-facing text.

    OS-level errors carry paths and errno text, so they map to one fixed
    message; the details go to the log.
    """
    if isinstance(exc, ApiError):
        return exc.message
    if isinstance(exc, OSError):
        return MSG_FILE_ERROR
    return str(exc) or MSG_UNKNOWN_ERROR


class Workspace:
    """The script workspace and its persisted state.

    WHY: A single owner for the section list keeps identity rules and
    persistence in one place; the CLI and HTTP API are thin callers.

    HOW: Persistent fields mirror WorkspaceSnapshot; transient fields
    (is_*, *_error, upload_progress, transcribe_status_label) exist only
    in memory. The client is any object with the WorkspaceClient
    coroutine methods, already entered.
    """

    def __init__(
        self,
        client=None,  # noqa: ANN001
        store: Optional[StateStore] = None,
        snapshot: Optional[WorkspaceSnapshot] = None,
    ) -> None:
        self.client = client
        self.store = store
        snapshot = snapshot if snapshot is not None else WorkspaceSnapshot()

        self.transcript: str = snapshot.transcript
        self.transcribed_audio_url: Optional[str] = snapshot.transcribed_audio_url
        self.last_uploaded_file_name: Optional[str] = snapshot.last_uploaded_file_name
        self.sections: List[ScriptSection] = [
            section.model_copy() for section in snapshot.sections
        ]
        self.batch_zip_url: Optional[str] = snapshot.batch_zip_url

        self.is_transcribing = False
        self.transcribe_error: Optional[str] = None
        self.upload_progress: Optional[int] = None
        self.transcribe_status_label: Optional[str] = None
        self.is_generating = False
        self.generate_error: Optional[str] = None
        self.is_batching = False
        self.batch_error: Optional[str] = None

    @classmethod
    def from_store(cls, store: StateStore, client=None) -> Workspace:  # noqa: ANN001
        """Hydrate a workspace from the persisted snapshot (read once)."""
        return cls(client=client, store=store, snapshot=load_snapshot(store))

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    def get_section(self, section_id: str) -> Optional[ScriptSection]:
        """Return the live section with this id, or None."""
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def snapshot(self) -> WorkspaceSnapshot:
        return WorkspaceSnapshot(
            transcript=self.transcript,
            transcribed_audio_url=self.transcribed_audio_url,
            last_uploaded_file_name=self.last_uploaded_file_name,
            sections=self.sections,
            batch_zip_url=self.batch_zip_url,
        )

    def _commit(self) -> None:
        if self.store is not None:
            save_snapshot(self.store, self.snapshot())

    def _require_client(self):  # noqa: ANN202
        if self.client is None:
            raise RuntimeError("No service client configured for this workspace.")
        return self.client

    # ------------------------------------------------------------------
    # Transcribe
    # ------------------------------------------------------------------

    def _on_upload_progress(self, percent: Optional[float]) -> None:
        if percent is None:
            self.upload_progress = None
        else:
            self.upload_progress = max(0, min(100, round(percent)))

    async def transcribe(
        self,
        file_path: Union[str, Path],
        filename: Optional[str] = None,
    ) -> bool:
        """Upload a media file and store its transcript.

        A new upload starts a new session: the previous sections and
        batch archive are dropped before the call is issued.

        Returns:
            True on success; False with transcribe_error set otherwise.
        """
        file_path = Path(file_path)
        self.is_transcribing = True
        self.transcribe_error = None
        self.last_uploaded_file_name = filename or file_path.name
        self.generate_error = None
        self.sections = []
        self.batch_error = None
        self.batch_zip_url = None
        self.upload_progress = 0
        self.transcribe_status_label = LABEL_TRANSCRIBING
        self._commit()

        try:
            result = await self._require_client().transcribe(
                file_path, on_progress=self._on_upload_progress
            )
        except Exception as exc:
            logger.warning("Transcription of %s failed: %s", file_path.name, exc)
            self.transcribe_error = error_message(exc)
            self.transcript = ""
            self.transcribed_audio_url = None
            self.transcribe_status_label = LABEL_ERROR
            succeeded = False
        else:
            self.transcript = result.transcript
            self.transcribed_audio_url = result.audio_url
            self.transcribe_status_label = None
            succeeded = True
        finally:
            self.is_transcribing = False
            self.upload_progress = None

        self._commit()
        return succeeded

    # ------------------------------------------------------------------
    # Generate + replace-all
    # ------------------------------------------------------------------

    def replace_sections(self, parsed: Sequence[ParsedSection]) -> bool:
        """Replace the whole section sequence with freshly parsed sections.

        RULES:
        - Same length and order as parsed, each with a new id
        - audio_url None, is_synthesizing False, error None
        - Empty parsed → generate_error set, current sections untouched
        """
        if not parsed:
            self.generate_error = MSG_PARSE_FAILED
            self._commit()
            return False

        self.sections = [
            ScriptSection(
                id=create_section_id(index),
                title=item.title,
                body=item.body,
                audio_url=None,
                is_synthesizing=False,
                error=None,
            )
            for index, item in enumerate(parsed)
        ]
        logger.info("Replaced script with %d sections", len(self.sections))
        self._commit()
        return True

    async def generate(self) -> bool:
        """Generate a script from the transcript and split it into sections."""
        if not self.transcript.strip():
            self.generate_error = MSG_NO_TRANSCRIPT
            self._commit()
            return False

        self.is_generating = True
        self.generate_error = None
        self.batch_zip_url = None
        self.batch_error = None
        self._commit()

        try:
            result = await self._require_client().generate_script(self.transcript)
        except Exception as exc:
            logger.warning("Script generation failed: %s", exc)
            self.is_generating = False
            self.generate_error = error_message(exc)
            self._commit()
            return False

        self.is_generating = False
        return self.replace_sections(parse_script_markdown(result.response))

    # ------------------------------------------------------------------
    # Per-section synthesis
    # ------------------------------------------------------------------

    async def synthesize_section(
        self,
        section_id: str,
        text: Optional[str] = None,
    ) -> Optional[str]:
        """Synthesize one section and merge the result back by id.

        Args:
            section_id: Target section. Unknown ids are ignored.
            text: Text to synthesize; defaults to the section's body.

        Returns:
            The audio locator on success, else None.
        """
        section = self.get_section(section_id)
        if section is None:
            return None
        if text is None:
            text = section.body

        section.is_synthesizing = True
        section.error = None
        section.audio_url = None
        self._commit()

        try:
            result = await self._require_client().synthesize_speech(text)
        except Exception as exc:
            target = self.get_section(section_id)
            if target is None:
                logger.debug("Dropping synthesis failure for removed section %s", section_id)
                return None
            logger.warning("Synthesis of section %s failed: %s", section_id, exc)
            target.is_synthesizing = False
            target.error = error_message(exc)
            self._commit()
            return None

        target = self.get_section(section_id)
        if target is None:
            logger.debug("Dropping synthesis result for removed section %s", section_id)
            return None
        target.audio_url = result.audio_url
        target.is_synthesizing = False
        self._commit()
        return result.audio_url

    async def synthesize_all(self) -> List[Optional[str]]:
        """Synthesize every current section concurrently, one call each."""
        section_ids = [section.id for section in self.sections]
        return list(
            await asyncio.gather(*(self.synthesize_section(sid) for sid in section_ids))
        )

    # ------------------------------------------------------------------
    # Batch synthesis
    # ------------------------------------------------------------------

    async def batch_synthesize(self) -> Optional[str]:
        """Send all non-empty section bodies as one zip request.

        Returns:
            The archive locator on success, else None (batch_error set).
        """
        text_list = [section.body.strip() for section in self.sections]
        text_list = [text for text in text_list if text]
        if not text_list:
            self.batch_error = MSG_NOTHING_TO_SYNTHESIZE
            self._commit()
            return None

        self.is_batching = True
        self.batch_error = None
        self.batch_zip_url = None
        self._commit()

        try:
            result = await self._require_client().batch_synthesize_to_zip(text_list)
        except Exception as exc:
            logger.warning("Batch synthesis of %d texts failed: %s", len(text_list), exc)
            self.is_batching = False
            self.batch_zip_url = None
            self.batch_error = error_message(exc)
            self._commit()
            return None

        self.is_batching = False
        self.batch_zip_url = result.zip_url
        self.batch_error = None
        self._commit()
        return result.zip_url

    # ------------------------------------------------------------------
    # Export / reset
    # ------------------------------------------------------------------

    def export_script(self, path: Union[str, Path, None] = None) -> Optional[str]:
        """Render the sections as chapter text, optionally writing a file.

        Returns:
            The rendered text, or None with batch_error set when there is
            nothing to export or the file cannot be written.
        """
        try:
            text = render_script_text(self.sections)
            if path is not None:
                save_script_text(self.sections, path)
        except (EmptyScriptError, OSError) as exc:
            logger.warning("Script export failed: %s", exc)
            self.batch_error = error_message(exc)
            self._commit()
            return None
        return text

    def reset(self) -> None:
        """Clear the whole workspace, in memory and on disk."""
        self.transcript = ""
        self.transcribed_audio_url = None
        self.last_uploaded_file_name = None
        self.sections = []
        self.batch_zip_url = None
        self.transcribe_error = None
        self.transcribe_status_label = None
        self.upload_progress = None
        self.generate_error = None
        self.batch_error = None
        if self.store is not None:
            clear_snapshot(self.store)
        logger.info("Workspace reset")
