"""Script Workspace: transcribe, generate, and voice a script in one place.

WHY: Turning a recorded video into a narrated script takes three remote
services (transcription, script generation, text-to-speech) and a lot of
bookkeeping in between. This package keeps that bookkeeping in one
workspace: it splits generated markdown into addressable sections, tracks
per-section synthesis results by identity, and persists everything so a
session survives restarts.

HOW: Three layers: collaborators (api/ client for the remote services),
core (section parser, workspace state reducer, export), and surfaces
(CLI and FastAPI workspace API). Both surfaces drive the same Workspace.

RULES:
- All remote calls go through WorkspaceClient
- Section identity is a surrogate key, never derived from content
- The snapshot is rewritten on every observable state change
"""

__version__ = "0.1.0"
