"""Core parsing, workspace state, and export modules.

WHY: The core package is the logic with real invariants: how a script
is split into sections, how section identity survives concurrent
synthesis, and how state is persisted. Surfaces (CLI, HTTP API) only
call into it.

HOW: parser.py turns markdown into ParsedSection values, workspace.py
owns the ScriptSection sequence and the operations on it, export.py
renders the sections as plain text, models.py holds the shared types.

RULES:
- parser.py is pure (no I/O, no state)
- Only workspace.py mutates sections
"""
