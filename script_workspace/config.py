"""Configuration constants, user-facing messages, and .env loading.

WHY: Centralizes all configurable values so they are easy to find,
update, and override. The collaborator base URL, the state directory,
the snapshot storage key, and every message shown to the user are plain
data rather than buried in logic, so both humans and coding agents can modify
them confidently.

HOW: python-dotenv loads the .env file on import. Constants are defined
as module-level strings and numbers. Messages live in one block so the
workspace, CLI, and HTTP API all surface the same wording.

RULES:
- All defaults can be overridden via environment variables
- API_BASE_URL never carries a trailing slash
- STORAGE_KEY is the single named key holding the workspace snapshot
- Messages are user-facing text; raw exception text is never shown
  except through error_message() in the workspace
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Collaborator service
# ---------------------------------------------------------------------------

API_BASE_URL = os.getenv("WORKSPACE_API_BASE_URL", "http://localhost:5000").rstrip("/")
REQUEST_TIMEOUT_S = float(os.getenv("WORKSPACE_REQUEST_TIMEOUT", "300"))
CONNECT_TIMEOUT_S = 30.0

# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

STATE_DIR = Path(
    os.getenv("WORKSPACE_STATE_DIR", str(Path.home() / ".script_workspace"))
).expanduser()

STORAGE_KEY = "reskiling_ai_workspace_state"
"""Name of the key holding the serialized WorkspaceSnapshot."""

# ---------------------------------------------------------------------------
# HTTP workspace API
# ---------------------------------------------------------------------------

SERVER_HOST = os.getenv("WORKSPACE_HOST", "127.0.0.1")
SERVER_PORT = int(os.getenv("WORKSPACE_PORT", "8000"))

# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

DEFAULT_EXPORT_FILENAME = "script.txt"

# ---------------------------------------------------------------------------
# User-facing messages
# ---------------------------------------------------------------------------

MSG_NETWORK_ERROR = "ネットワークエラーが発生しました。"
MSG_UNEXPECTED_RESPONSE = "サーバーから予期しないレスポンスを受信しました。"
MSG_SERVER_ERROR = "サーバーエラーが発生しました (HTTP {status})"
MSG_UNKNOWN_ERROR = "不明なエラーが発生しました。"
MSG_NO_TRANSCRIPT = "文字起こし結果がありません。"
MSG_PARSE_FAILED = "台本を解析できませんでした。"
MSG_NOTHING_TO_SYNTHESIZE = "音声化できる文章がありません。"
MSG_EMPTY_EXPORT = "ダウンロードできる台本がありません。"
MSG_FILE_ERROR = "ファイルの読み書きに失敗しました。"

LABEL_TRANSCRIBING = "文字起こし中です"
LABEL_ERROR = "エラーです"
