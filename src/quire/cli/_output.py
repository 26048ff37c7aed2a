"""CLI output formatting (JSON and text modes)."""
from __future__ import annotations

import json
import sys
from typing import Any, Dict, Optional, TextIO


class OutputFormatter:
    """Output formatter shared by every quire command."""

    def __init__(self, json_mode: bool = False, indent: int = 2, *, stream: Optional[TextIO] = None):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON; otherwise output text
            indent: JSON indentation level
            stream: Destination for regular output (default: stdout)
        """
        self.json_mode = json_mode
        self.indent = indent
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    def success(self, data: Dict[str, Any], message: str, *, status: str = "success") -> None:
        """Output a success result: ``data`` in JSON mode, ``message`` otherwise."""
        if self.json_mode:
            self.json_output({"status": status, **data})
        else:
            self.text(message)

    def error(self, error: Exception, message: Optional[str] = None, *, error_code: str = "error") -> None:
        """Output an error result to stderr.

        Errors carrying ``to_json_error()`` include their context in JSON mode.
        """
        msg = message or str(error)
        if self.json_mode:
            output: Dict[str, Any] = {"error": error_code, "message": msg}
            to_json = getattr(error, "to_json_error", None)
            if callable(to_json):
                payload = to_json()
                output["code"] = payload.get("code")
                output["context"] = payload.get("context", {})
            print(json.dumps(output, indent=self.indent, default=str), file=sys.stderr)
        else:
            print(f"Error: {msg}", file=sys.stderr)

    def json_output(self, data: Any) -> None:
        print(json.dumps(data, indent=self.indent, default=str), file=self.stream)

    def text(self, message: str) -> None:
        print(message, file=self.stream)

    def raw(self, content: str) -> None:
        """Write ``content`` as-is (no trailing newline)."""
        self.stream.write(content)


__all__ = ["OutputFormatter"]
