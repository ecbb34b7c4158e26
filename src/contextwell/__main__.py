"""Allow running Contextwell as ``python -m contextwell``.

The subprocess execution path relies on this entry point: every isolated
tool call spawns ``python -m contextwell execute-tool ...``.
"""

from contextwell.cli import main

if __name__ == "__main__":
    main()
