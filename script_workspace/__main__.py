"""Package entry point for ``python -m script_workspace``.

WHY: Users run the workspace as ``python -m script_workspace <command>``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.

HOW: Delegates to the CLI's main() function; ``serve`` starts the HTTP API.
"""

from script_workspace.cli import main

if __name__ == "__main__":
    main()
