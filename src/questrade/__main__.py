"""`python -m questrade`: same entry point as the `questrade` console script."""

import sys

from questrade.cli.main import run

if __name__ == "__main__":
    # cp1252 Windows consoles cannot print the rich box characters.
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")
    run()
