"""Command-line interface for the Script Workspace.

WHY: Users need to drive the whole flow from the terminal: upload a
video, generate the script, voice sections, download the archive link
and the plain-text script, all without a browser. The CLI works on the same
persisted workspace as the HTTP API, so both can be mixed freely.

HOW: Uses argparse subcommands. Each command hydrates the Workspace from
the state store, runs one operation (async commands via asyncio.run()),
and reports the outcome. Status messages go to stderr; requested data
(section listings, parsed sections, export text) goes to stdout.

RULES:
- Commands: show, parse, transcribe, generate, synthesize, batch,
  export, reset, serve
- Field-scoped errors (transcribe_error, generate_error, section errors,
  batch_error) are printed to stderr and exit with status 1
- Export never overwrites: script.txt, script-2.txt, ... (numeric suffix)
- --verbose enables INFO logging for the library modules
- Python 3.9 compatible (no match/case, no X | Y unions)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from script_workspace.api.client import WorkspaceClient
from script_workspace.config import API_BASE_URL, DEFAULT_EXPORT_FILENAME, STATE_DIR
from script_workspace.core.parser import parse_script_markdown
from script_workspace.core.workspace import Workspace
from script_workspace.storage import StateStore


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(path: Path) -> Path:
    """Return path, or the first free "{stem}-N{ext}" sibling if it exists.

    RULES:
    - First attempt: the path as given (e.g. script.txt)
    - Conflict: insert a counter before the extension (script-2.txt)
    - Counter starts at 2 and increments
    """
    if not path.exists():
        return path

    counter = 2
    while True:
        candidate = path.with_name("{}-{}{}".format(path.stem, counter, path.suffix))
        if not candidate.exists():
            return candidate
        counter += 1


def _print_sections(workspace: Workspace) -> None:
    for index, section in enumerate(workspace.sections, start=1):
        if section.is_synthesizing:
            state = "synthesizing"
        elif section.audio_url:
            state = "audio: {}".format(section.audio_url)
        elif section.error:
            state = "error: {}".format(section.error)
        else:
            state = "not synthesized"
        print("{:>3}. [{}] {} ({})".format(index, section.id, section.title, state))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_show(args: argparse.Namespace, workspace: Workspace) -> None:
    if args.json:
        print(json.dumps(workspace.snapshot().to_json_dict(), ensure_ascii=False, indent=2))
        return

    if workspace.last_uploaded_file_name:
        print("File: {}".format(workspace.last_uploaded_file_name))
    if workspace.transcribed_audio_url:
        print("Audio: {}".format(workspace.transcribed_audio_url))
    print("Transcript: {} chars".format(len(workspace.transcript)))
    print("Sections: {}".format(len(workspace.sections)))
    _print_sections(workspace)
    if workspace.batch_zip_url:
        print("Batch archive: {}".format(workspace.batch_zip_url))


def _cmd_parse(args: argparse.Namespace, workspace: Workspace) -> None:
    markdown = Path(args.markdown_file).read_text(encoding="utf-8")
    parsed = parse_script_markdown(markdown)

    if not args.apply:
        print(json.dumps(
            [{"title": s.title, "body": s.body} for s in parsed],
            ensure_ascii=False,
            indent=2,
        ))
        return

    if not workspace.replace_sections(parsed):
        _fail(workspace.generate_error or "")
    _status("Loaded {} sections into the workspace.".format(len(parsed)))
    _print_sections(workspace)


async def _cmd_transcribe(args: argparse.Namespace, workspace: Workspace) -> None:
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _fail("Input file not found: {}".format(input_path))

    _status("Uploading {}...".format(input_path.name))
    if not await workspace.transcribe(input_path):
        _fail(workspace.transcribe_error or "")
    _status("Transcribed {} chars.".format(len(workspace.transcript)))
    if workspace.transcribed_audio_url:
        _status("  Audio: {}".format(workspace.transcribed_audio_url))


async def _cmd_generate(args: argparse.Namespace, workspace: Workspace) -> None:
    _status("Generating script...")
    if not await workspace.generate():
        _fail(workspace.generate_error or "")
    _status("Generated {} sections.".format(len(workspace.sections)))
    _print_sections(workspace)


async def _cmd_synthesize(args: argparse.Namespace, workspace: Workspace) -> None:
    if args.all:
        section_ids = [section.id for section in workspace.sections]
    else:
        section_ids = list(args.section_ids)
    if not section_ids:
        _fail("No sections to synthesize. Pass section ids or --all.")

    unknown = [sid for sid in section_ids if workspace.get_section(sid) is None]
    for sid in unknown:
        _status("  Skipping unknown section {}".format(sid))
    if len(unknown) == len(section_ids):
        _fail("None of the given section ids exist. Run 'show' to list them.")

    _status("Synthesizing {} section(s)...".format(len(section_ids) - len(unknown)))
    await asyncio.gather(*(workspace.synthesize_section(sid) for sid in section_ids))

    failed = False
    for sid in section_ids:
        section = workspace.get_section(sid)
        if section is None:
            continue
        if section.error:
            failed = True
            _status("  {}: {}".format(section.title, section.error))
        else:
            _status("  {}: {}".format(section.title, section.audio_url))
    if failed:
        sys.exit(1)


async def _cmd_batch(args: argparse.Namespace, workspace: Workspace) -> None:
    _status("Synthesizing all sections into one archive...")
    zip_url = await workspace.batch_synthesize()
    if zip_url is None:
        _fail(workspace.batch_error or "")
    print(zip_url)


def _cmd_export(args: argparse.Namespace, workspace: Workspace) -> None:
    if args.output == "-":
        text = workspace.export_script()
        if text is None:
            _fail(workspace.batch_error or "")
        print(text)
        return

    output_path = _resolve_output_path(Path(args.output or DEFAULT_EXPORT_FILENAME))
    if workspace.export_script(output_path) is None:
        _fail(workspace.batch_error or "")
    _status("Saved: {}".format(output_path))


def _cmd_reset(args: argparse.Namespace, workspace: Workspace) -> None:
    workspace.reset()
    _status("Workspace reset.")


_SYNC_COMMANDS = {
    "show": _cmd_show,
    "parse": _cmd_parse,
    "export": _cmd_export,
    "reset": _cmd_reset,
}

_ASYNC_COMMANDS = {
    "transcribe": _cmd_transcribe,
    "generate": _cmd_generate,
    "synthesize": _cmd_synthesize,
    "batch": _cmd_batch,
}


async def _run_with_client(args: argparse.Namespace, store: StateStore) -> None:
    async with WorkspaceClient(base_url=args.api_url) as client:
        workspace = Workspace.from_store(store, client=client)
        await _ASYNC_COMMANDS[args.command](args, workspace)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without running commands.
    """
    parser = argparse.ArgumentParser(
        prog="script_workspace",
        description="Transcribe a video, generate a chaptered script, and "
                    "synthesize speech per chapter or as a zip archive.",
    )
    parser.add_argument(
        "--api-url",
        default=API_BASE_URL,
        help="Base URL of the transcription/script/speech service (default: %(default)s).",
    )
    parser.add_argument(
        "--state-dir",
        default=str(STATE_DIR),
        help="Directory holding the saved workspace (default: %(default)s).",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log library activity to stderr.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Show the saved workspace.")
    show.add_argument("--json", action="store_true", help="Print the raw snapshot as JSON.")

    parse = sub.add_parser("parse", help="Split a markdown script into sections.")
    parse.add_argument("markdown_file", help="Path to a heading-delimited markdown script.")
    parse.add_argument(
        "--apply",
        action="store_true",
        help="Replace the workspace sections with the parsed sections.",
    )

    transcribe = sub.add_parser("transcribe", help="Upload a video and transcribe it.")
    transcribe.add_argument("input_file", help="Path to the video or audio file.")

    sub.add_parser("generate", help="Generate the script from the saved transcript.")

    synthesize = sub.add_parser("synthesize", help="Synthesize speech for sections.")
    synthesize.add_argument("section_ids", nargs="*", help="Ids of the sections to synthesize.")
    synthesize.add_argument("--all", action="store_true", help="Synthesize every section.")

    sub.add_parser("batch", help="Synthesize all sections into one zip archive.")

    export = sub.add_parser("export", help="Write the script as plain text.")
    export.add_argument(
        "-o", "--output",
        default=None,
        help="Output file, or '-' for stdout (default: {}).".format(DEFAULT_EXPORT_FILENAME),
    )

    sub.add_parser("reset", help="Clear the saved workspace.")

    serve = sub.add_parser("serve", help="Run the workspace HTTP API.")
    serve.add_argument("--host", default=None, help="Bind address.")
    serve.add_argument("--port", type=int, default=None, help="Bind port.")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "serve":
        from script_workspace.server.app import run_api
        run_api(host=args.host, port=args.port, state_dir=args.state_dir, api_url=args.api_url)
        return

    store = StateStore(Path(args.state_dir).expanduser())
    if args.command in _ASYNC_COMMANDS:
        asyncio.run(_run_with_client(args, store))
    else:
        _SYNC_COMMANDS[args.command](args, Workspace.from_store(store))


if __name__ == "__main__":
    main()
