"""Dotenv file loading for discovery defaults."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from ..errors import ConfigurationError

_EXPORT_PREFIX = "export "


class DotenvLoader:
    """Reads ``KEY=value`` pairs from .env-style files."""

    @staticmethod
    def load_from_file(path: Path, *, prefix: Optional[str] = None) -> Dict[str, str]:
        """
        Load key-value pairs from a .env file.

        Args:
            path: Path to .env file
            prefix: When given, only keys starting with this prefix are kept

        Returns:
            Dictionary of values; empty when the file does not exist

        Raises:
            ConfigurationError: If the file exists but cannot be read
        """
        if not path.is_file():
            return {}

        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError.load_failed("dotenv file", str(path)) from exc

        values: Dict[str, str] = {}
        for line in lines:
            parsed = DotenvLoader.parse_line(line)
            if parsed is None:
                continue
            key, value = parsed
            if prefix and not key.startswith(prefix):
                continue
            values[key] = value
        return values

    @staticmethod
    def parse_line(line: str) -> Optional[tuple[str, str]]:
        """Parse one line into ``(key, value)``; ``None`` for blanks and comments."""
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            return None
        if stripped.startswith(_EXPORT_PREFIX):
            stripped = stripped[len(_EXPORT_PREFIX) :].lstrip()

        key, raw_value = stripped.split("=", 1)
        key = key.strip()
        if not key:
            return None
        value = raw_value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        elif " #" in value:
            value = value.split(" #", 1)[0].rstrip()
        return key, value
