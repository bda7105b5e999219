"""KEY=VALUE text codec for the working file and snapshot plaintext.

Values are trimmed on parse and a single matching pair of surrounding quotes
is removed without escape processing, so the codec is not lossless for
values with significant leading/trailing whitespace or embedded newlines.
"""

import re
from typing import Mapping

from envsimple.types import EnvMapping

_NEEDS_QUOTES = re.compile(r"[\s#]")


def parse_env(text: str) -> EnvMapping:
    """Parse ``KEY=VALUE`` lines into a mapping.

    Blank lines, ``#`` comments and lines without ``=`` are ignored. The
    last occurrence of a duplicate key wins.
    """
    result: EnvMapping = {}
    if not text:
        return result

    for line in text.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue

        key, sep, value = trimmed.partition("=")
        if not sep:
            continue

        key = key.strip()
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        result[key] = value

    return result


def format_env(env: Mapping[str, str]) -> str:
    """Serialize a mapping as sorted ``KEY=VALUE`` lines.

    Values containing whitespace or ``#`` are double-quoted. The output
    always ends with exactly one newline; an empty mapping gives ``"\\n"``.
    """
    lines = []
    for key in sorted(env):
        value = env[key]
        if _NEEDS_QUOTES.search(value):
            value = f'"{value}"'
        lines.append(f"{key}={value}")
    return "\n".join(lines) + "\n"


def normalize_content(text: str) -> str:
    """Normalize line endings and outer whitespace for content comparison."""
    return text.replace("\r\n", "\n").strip()
