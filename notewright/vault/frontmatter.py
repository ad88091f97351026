"""
Frontmatter codec for managed notes.

Reads and writes the flat ``key: value`` header delimited by two ``---`` lines
at the top of every note. Only this flat subset of YAML is understood; any
other line inside the header is kept verbatim and never interpreted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Tuple


DELIMITER = "---"


def _line_ending(line: str) -> str:
    stripped = line.rstrip("\r\n")
    return line[len(stripped):]


def _split_field(line: str) -> Optional[Tuple[str, str]]:
    """Return (key, value) for a top-level ``key: value`` line, else None."""
    if not line.strip() or line[:1].isspace():
        return None
    text = line.rstrip("\r\n")
    if ":" not in text:
        return None
    key, value = text.split(":", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip()


def format_value(value) -> str:
    """Render a frontmatter value as literal text (lists become ``[a, b]``)."""
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(str(item) for item in value) + "]"
    return str(value)


class Frontmatter:
    """
    Ordered, line-preserving view of a note header.

    The raw header lines are kept in their original order together with their
    line endings. Setting a key rewrites only the line(s) carrying that key,
    so user-added keys and any lines the codec does not understand survive a
    merge byte for byte.
    """

    def __init__(self, lines: Optional[Iterable[str]] = None):
        self._lines: List[str] = list(lines or [])

    @classmethod
    def from_fields(cls, fields: Mapping[str, object], key_order: Optional[Iterable[str]] = None) -> "Frontmatter":
        lines = []
        for key in _ordered_keys(fields, key_order):
            value = fields[key]
            if value is None:
                continue
            lines.append(f"{key}: {format_value(value)}\n")
        return cls(lines)

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    @property
    def fields(self) -> Dict[str, str]:
        """Parsed ``key -> value`` mapping; the last duplicate key wins."""
        result: Dict[str, str] = {}
        for line in self._lines:
            parsed = _split_field(line)
            if parsed:
                key, value = parsed
                result.pop(key, None)
                result[key] = value
        return result

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.fields.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self.fields

    def set(self, key: str, value, add_missing: bool = True) -> bool:
        """
        Set a key to a new value.

        Args:
            key: Frontmatter key
            value: New value (rendered as literal text)
            add_missing: Append the key when the header does not have it yet

        Returns:
            True if the header text changed
        """
        new_value = format_value(value)
        found = False
        changed = False

        for idx, line in enumerate(self._lines):
            parsed = _split_field(line)
            if not parsed or parsed[0] != key:
                continue
            found = True
            ending = _line_ending(line) or "\n"
            new_line = f"{key}: {new_value}{ending}"
            if new_line != line:
                self._lines[idx] = new_line
                changed = True

        if not found and add_missing:
            if self._lines and not _line_ending(self._lines[-1]):
                self._lines[-1] += "\n"
            self._lines.append(f"{key}: {new_value}\n")
            changed = True

        return changed

    def update(self, values: Mapping[str, object], add_missing: bool = True) -> bool:
        changed = False
        for key, value in values.items():
            if value is None:
                continue
            changed = self.set(key, value, add_missing=add_missing) or changed
        return changed

    def render(self) -> str:
        """Render the header with its delimiters (no trailing blank line)."""
        body = "".join(self._lines)
        if body and not body.endswith("\n"):
            body += "\n"
        return f"{DELIMITER}\n{body}{DELIMITER}\n"


@dataclass
class ParsedNote:
    """Result of splitting a note into its header and body."""

    fields: Dict[str, str]
    body: str
    present: bool
    frontmatter: Frontmatter = field(default_factory=Frontmatter)
    opening: str = ""
    closing: str = ""

    def assemble(self) -> str:
        """Re-serialize the note, keeping the delimiter lines and body verbatim."""
        if not self.present:
            return self.body
        return self.opening + "".join(self.frontmatter.lines) + self.closing + self.body


def parse_frontmatter(text: str) -> ParsedNote:
    """
    Split note text into frontmatter fields and body.

    A header is present only when the first line is exactly ``---`` and a
    later line is exactly ``---``. Otherwise the whole text is the body.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != DELIMITER:
        return ParsedNote(fields={}, body=text, present=False)

    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r\n") == DELIMITER:
            header = Frontmatter(lines[1:idx])
            return ParsedNote(
                fields=header.fields,
                body="".join(lines[idx + 1:]),
                present=True,
                frontmatter=header,
                opening=lines[0],
                closing=lines[idx],
            )

    # Unterminated header
    return ParsedNote(fields={}, body=text, present=False)


def _ordered_keys(fields: Mapping[str, object], key_order: Optional[Iterable[str]]) -> List[str]:
    if key_order is None:
        return list(fields.keys())
    ordered = [key for key in key_order if key in fields]
    ordered += [key for key in fields.keys() if key not in ordered]
    return ordered


def render(fields: Mapping[str, object], key_order: Optional[Iterable[str]] = None) -> str:
    """
    Render a complete header block followed by a blank line.

    Keys listed in ``key_order`` come first in that order; any remaining keys
    follow in mapping order. ``None`` values are omitted.
    """
    return Frontmatter.from_fields(fields, key_order).render() + "\n"


def substitute_fields(text: str, updates: Mapping[str, object]) -> str:
    """
    Replace the values of keys already present in the note's header.

    Keys missing from the header are left out, the body is never touched, and
    text without a header is returned unchanged.
    """
    parsed = parse_frontmatter(text)
    if not parsed.present:
        return text
    parsed.frontmatter.update(updates, add_missing=False)
    return parsed.assemble()


def parse_iso_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware datetime; None if unparsable."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text[-1] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_timestamp(fields: Mapping[str, str], key: str) -> Optional[datetime]:
    """Read ``key`` from parsed fields as a timestamp. Never raises."""
    try:
        return parse_iso_timestamp(fields.get(key))
    except (TypeError, AttributeError):
        return None


def current_timestamp() -> str:
    """UTC now, ISO-8601 with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
