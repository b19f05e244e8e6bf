"""
Output and Log Bounding.

Run status documents live in blob storage and are returned over HTTP, so
process output and step logs are capped before they are stored.

Exports:
    truncate_output: Cap text at a character limit with a truncation marker
    OutputCollector: Incremental capture with the same cap (child process output)
    append_bounded: Ring-buffer append for step log lines
"""

from typing import Iterable, List, Optional

from config.defaults import RunDefaults


def truncate_output(text: Optional[str], limit: int = RunDefaults.STATUS_OUTPUT_LIMIT,
                    marker: str = RunDefaults.TRUNCATION_MARKER) -> str:
    """
    Return text unchanged when within limit, else its first `limit`
    characters followed by the marker.
    """
    value = text or ""
    if len(value) <= limit:
        return value
    return value[:limit] + marker


class OutputCollector:
    """
    Accumulates streamed output, cutting it off once the limit is reached.

    Chunks arriving after the cut are discarded, so memory stays bounded
    however chatty the child process is.
    """

    def __init__(self, limit: int, marker: str = RunDefaults.TRUNCATION_MARKER):
        self.limit = limit
        self.marker = marker
        self._parts: List[str] = []
        self._length = 0
        self.truncated = False

    def append(self, chunk: Optional[str]) -> None:
        if not chunk or self.truncated:
            return
        remaining = self.limit - self._length
        if len(chunk) > remaining:
            self._parts.append(chunk[:remaining])
            self._parts.append(self.marker)
            self._length = self.limit
            self.truncated = True
            return
        self._parts.append(chunk)
        self._length += len(chunk)

    def text(self) -> str:
        return "".join(self._parts)


def append_bounded(existing: Optional[List[str]], new_lines: Iterable[str],
                   max_lines: int = RunDefaults.MAX_LOG_LINES) -> List[str]:
    """Append lines, keeping only the most recent max_lines."""
    lines = list(existing or [])
    lines.extend(new_lines)
    if len(lines) > max_lines:
        lines = lines[-max_lines:]
    return lines
