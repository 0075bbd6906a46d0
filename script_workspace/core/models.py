"""Section and snapshot models shared by the parser, workspace, and API.

WHY: The same section data flows through three places (parser output,
the live workspace, and the persisted snapshot), and each has different
guarantees. Parser output has no identity. Workspace sections carry a
surrogate id plus synthesis status. The snapshot must survive being read
back from disk after an arbitrary edit or an older release wrote it.

HOW: ParsedSection is a frozen dataclass (pure value). ScriptSection and
WorkspaceSnapshot are Pydantic models serialized with camelCase aliases.
Wrap validators give each snapshot field its own fallback: a mistyped
value degrades to that field's default instead of rejecting the whole
snapshot.

RULES:
- ScriptSection.id is assigned once and never recomputed from content
- is_synthesizing is always False in a snapshot (transient, not persisted)
- Snapshot sections with a malformed id/title/body are dropped; later
  duplicates of an id are dropped
- Extra fields in stored data are ignored
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Type

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedSection:
    """One heading and its body text, as produced by the parser."""

    title: str
    body: str


def _default_for(model: Type[BaseModel], field_name: str) -> Any:
    return model.model_fields[field_name].get_default(call_default_factory=True)


class ScriptSection(BaseModel):
    """A section of the generated script tracked by the workspace.

    RULES:
    - id: opaque surrogate key, unique within one workspace
    - audio_url: locator of the last successful synthesis, or None
    - is_synthesizing: True only while a synthesis call is in flight
    - error: message of the last failed synthesis, or None
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: StrictStr
    title: StrictStr
    body: StrictStr
    audio_url: Optional[StrictStr] = None
    is_synthesizing: StrictBool = False
    error: Optional[StrictStr] = None

    @field_validator("audio_url", "is_synthesizing", "error", mode="wrap")
    @classmethod
    def _fallback_to_default(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Any:
        try:
            return handler(value)
        except ValidationError:
            return _default_for(cls, info.field_name)


class WorkspaceSnapshot(BaseModel):
    """Persisted workspace state, written whole on every change.

    WHY: The workspace must come back exactly as the user left it, minus
    anything that was in flight. Only terminal results (transcript,
    locators, section text and per-section results) are stored.

    HOW: Built by Workspace.snapshot() and validated again on load.
    Every field validates independently; see the module docstring for
    the fallback rules.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    transcript: StrictStr = ""
    transcribed_audio_url: Optional[StrictStr] = None
    last_uploaded_file_name: Optional[StrictStr] = None
    sections: List[ScriptSection] = Field(default_factory=list)
    batch_zip_url: Optional[StrictStr] = None

    @field_validator(
        "transcript",
        "transcribed_audio_url",
        "last_uploaded_file_name",
        "batch_zip_url",
        mode="wrap",
    )
    @classmethod
    def _fallback_to_default(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Any:
        try:
            return handler(value)
        except ValidationError:
            logger.debug("Discarding malformed snapshot field %s", info.field_name)
            return _default_for(cls, info.field_name)

    @field_validator("sections", mode="wrap")
    @classmethod
    def _revive_sections(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
    ) -> List[ScriptSection]:
        if not isinstance(value, list):
            return []

        revived: List[ScriptSection] = []
        seen_ids = set()
        for item in value:
            if isinstance(item, ScriptSection):
                section = item.model_copy()
            else:
                try:
                    section = ScriptSection.model_validate(item)
                except ValidationError:
                    logger.debug("Discarding malformed snapshot section: %r", item)
                    continue
            if section.id in seen_ids:
                continue
            seen_ids.add(section.id)
            section.is_synthesizing = False
            revived.append(section)
        return revived

    def to_json_dict(self) -> dict:
        """Serialize with camelCase keys, ready for json.dumps."""
        return self.model_dump(mode="json", by_alias=True)
