"""Run `brex` from a source checkout: `python main.py accounts --json`.

The packages live under `src/`, which is only importable after
`pip install -e .`; this script puts it on `sys.path` first.
"""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"


def main() -> None:
    # Table rules and the truncation ellipsis are not in cp1252.
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")
    if str(SRC_DIR) not in sys.path:
        sys.path.insert(0, str(SRC_DIR))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
