# wingfoil/util/logging.py
from __future__ import annotations

import datetime
import sys
from typing import TextIO, Optional


def utc_now_iso() -> str:
    """Return current UTC timestamp as ISO-8601 string."""
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="seconds")


def log(msg: str, *, stream: Optional[TextIO] = None) -> None:
    """
    Print a timestamped log line (local time with timezone).

    Goes to stderr so report/JSON output on stdout stays pipeable.
    """
    ts = datetime.datetime.now().astimezone().isoformat(timespec="seconds")
    print(f"{ts}  {msg}", file=stream or sys.stderr)
