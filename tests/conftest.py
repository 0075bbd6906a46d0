"""Shared test fixtures for the script_workspace test suite.

WHY: Workspace, CLI, and API tests all need the same fake service client
and a throwaway state store. Centralizing them here keeps every test
independent of the network and of the user's real state directory.

HOW: FakeClient implements the WorkspaceClient coroutine methods with
canned results and records every call. Failures are injected per
operation through the ``failures`` dict. The store fixture points a
StateStore at pytest's tmp_path.

RULES:
- The real service is never called
- Each test gets a fresh store and a fresh FakeClient
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import pytest

from script_workspace.api.models import (
    BatchTtsResult,
    ScriptGenerationResult,
    TextToSpeechResult,
    TranscriptionResult,
)
from script_workspace.core.workspace import Workspace
from script_workspace.storage import StateStore

SAMPLE_SCRIPT = (
    "Here is your script.\n"
    "\n"
    "# オープニング\n"
    "皆さん、こんにちは。\n"
    "- 今日のテーマを紹介します。\n"
    "\n"
    "## 本編\n"
    "1. 最初のポイント\n"
    "2. 次のポイント\n"
    "\n"
    "# まとめ\n"
    "* ご視聴ありがとうございました。\n"
)


class FakeClient:
    """In-memory stand-in for WorkspaceClient."""

    def __init__(self) -> None:
        self.transcript = "これはテスト用の文字起こしです。"
        self.script_markdown = SAMPLE_SCRIPT
        self.progress_steps: List[Optional[float]] = [0.0, 42.4, None, 100.0]
        self.failures: Dict[str, Exception] = {}
        self.transcribe_calls: List[str] = []
        self.prompts: List[str] = []
        self.tts_calls: List[str] = []
        self.batch_calls: List[List[str]] = []

    async def __aenter__(self) -> FakeClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    async def transcribe(self, file_path, on_progress=None) -> TranscriptionResult:
        self.transcribe_calls.append(str(file_path))
        if on_progress is not None:
            for step in self.progress_steps:
                on_progress(step)
        if "transcribe" in self.failures:
            raise self.failures["transcribe"]
        return TranscriptionResult(
            transcript=self.transcript,
            audio_url="https://media.example/audio/source.mp3",
        )

    async def generate_script(self, prompt: str) -> ScriptGenerationResult:
        self.prompts.append(prompt)
        if "generate" in self.failures:
            raise self.failures["generate"]
        return ScriptGenerationResult(response=self.script_markdown)

    async def synthesize_speech(self, text: str) -> TextToSpeechResult:
        self.tts_calls.append(text)
        if "tts" in self.failures:
            raise self.failures["tts"]
        return TextToSpeechResult(
            audio_url="https://media.example/tts/{}.mp3".format(len(self.tts_calls))
        )

    async def batch_synthesize_to_zip(self, text_list: List[str]) -> BatchTtsResult:
        self.batch_calls.append(list(text_list))
        if "batch" in self.failures:
            raise self.failures["batch"]
        return BatchTtsResult(zip_url="https://media.example/zip/batch.zip")


class GatedClient(FakeClient):
    """FakeClient whose speech calls block until the test releases them."""

    def __init__(self) -> None:
        super().__init__()
        self.gates: Dict[str, asyncio.Event] = {}

    def gate(self, text: str) -> asyncio.Event:
        # Must be called inside the running loop
        self.gates[text] = asyncio.Event()
        return self.gates[text]

    async def synthesize_speech(self, text: str) -> TextToSpeechResult:
        self.tts_calls.append(text)
        gate = self.gates.get(text)
        if gate is not None:
            await gate.wait()
        if "tts" in self.failures:
            raise self.failures["tts"]
        return TextToSpeechResult(audio_url="https://media.example/tts/{}.mp3".format(text))


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def store(tmp_path):
    """A StateStore rooted in a per-test temp directory."""
    return StateStore(tmp_path / "state")


@pytest.fixture
def workspace(fake_client, store):
    """An empty workspace wired to the fake client and temp store."""
    return Workspace(client=fake_client, store=store)


@pytest.fixture
def sample_script():
    return SAMPLE_SCRIPT


@pytest.fixture
def gated_client():
    return GatedClient()
