"""Human and JSON output for CLI commands."""

import json
import sys
from typing import Any, List, Sequence


def mask_secret(value: str) -> str:
    """Mask a variable value for display (never returns the full value)."""
    if len(value) <= 4:
        return "***"
    return f"{value[:2]}***{value[-2:]}"


def format_key_value(key: str, value: str, raw: bool = False) -> str:
    """Render one ``KEY=value`` line, masking the value unless ``raw``."""
    return f"{key}={value if raw else mask_secret(value)}"


class Output:
    """Prints command results.

    In JSON mode only :meth:`json` writes to stdout; human-readable messages
    are suppressed so the output stays machine-parseable. Errors always go
    to stderr.
    """

    def __init__(self, json_mode: bool = False, debug: bool = False):
        self.json_mode = json_mode
        self.debug = debug

    def success(self, message: str) -> None:
        if not self.json_mode:
            print(f"✓ {message}")

    def warning(self, message: str) -> None:
        if not self.json_mode:
            print(f"⚠ {message}")

    def info(self, message: str = "") -> None:
        if not self.json_mode:
            print(message)

    def error(self, message: str) -> None:
        print(f"✗ {message}", file=sys.stderr)

    def json(self, data: Any) -> None:
        print(json.dumps(data, indent=2, default=str))

    def table(self, headers: Sequence[str], rows: List[Sequence[Any]]) -> None:
        if self.json_mode:
            return
        cells = [[str(c) for c in row] for row in rows]
        widths = [len(h) for h in headers]
        for row in cells:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(cell))

        print("  ".join(h.ljust(widths[i]) for i, h in enumerate(headers)))
        print("  ".join("-" * w for w in widths))
        for row in cells:
            print("  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)))
