"""Raw transport framing for subscription streams.

A chunk read from a subscription holds one or more records separated by a
blank line. Only the last non-empty record is used; it starts with a fixed
6-character prefix (`data: `) that is stripped before JSON parsing.
"""

import json
from dataclasses import dataclass
from typing import Any

RECORD_SEPARATOR = "\n\n"
RECORD_PREFIX_LEN = 6


@dataclass(frozen=True)
class ParseError:
    """Returned instead of a payload when a frame or body cannot be decoded."""

    reason: str
    raw: str


def last_record(raw: str) -> str | None:
    records = [r for r in raw.split(RECORD_SEPARATOR) if r]
    if not records:
        return None
    return records[-1]


def parse_frame(raw: str) -> dict[str, Any] | ParseError:
    """Decode the last record of a raw chunk into the envelope dict."""
    record = last_record(raw)
    if record is None:
        return ParseError(reason="no records in frame", raw=raw)
    payload = record[RECORD_PREFIX_LEN:]
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        return ParseError(reason=f"invalid JSON: {e}", raw=payload)
    if not isinstance(data, dict):
        return ParseError(reason="frame payload is not a JSON object", raw=payload)
    return data
