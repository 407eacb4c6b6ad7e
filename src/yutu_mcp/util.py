from __future__ import annotations

import sys
from typing import TextIO


def safe_print(msg: str, *, file: TextIO | None = None) -> None:
    # Avoid UnicodeEncodeError on Windows CI/console encodings
    stream = file if file is not None else sys.stdout
    try:
        print(msg, file=stream)
    except UnicodeEncodeError:
        encoding = getattr(stream, "encoding", None) or "ascii"
        print(msg.encode(encoding, errors="replace").decode(encoding), file=stream)


def eprint(msg: str) -> None:
    safe_print(msg, file=sys.stderr)


def format_bytes(n: int | None) -> str:
    """Human-readable size using binary units, e.g. 1536 -> "1.50 KiB"."""
    if n is None or n < 0:
        return "unknown size"

    size = float(n)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0
    return f"{size:.2f} PiB"
