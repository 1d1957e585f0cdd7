"""Arranque de blogdesk desde un checkout, sin `pip install -e .`.

`python main.py blogs list` equivale al script `blogdesk` instalado: agrega
`src/` al path y delega en `cli.main.run`.
"""

from __future__ import annotations

import sys
from pathlib import Path


def main() -> None:
    # cp1252 consoles choke on the rich glyphs.
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")

    src_dir = Path(__file__).resolve().parent / "src"
    if str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
