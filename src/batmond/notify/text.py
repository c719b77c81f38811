"""Plain-text alert sink used in verbose mode."""

from __future__ import annotations

import sys
from typing import TextIO


class TextSink:
    """Writes alerts to a text stream (stdout by default)."""

    def __init__(self, stream: TextIO | None = None, prefix: str = "Battery") -> None:
        self.stream = stream
        self.prefix = prefix

    def print(self, message: str) -> None:
        self._write("", message)

    def critical(self, message: str) -> None:
        self._write(" [CRITICAL]", message)

    def _write(self, label: str, message: str) -> None:
        stream = self.stream or sys.stdout
        stream.write(f"{self.prefix}{label}: {message}\n")
        stream.flush()
