"""Per-run decode context threaded through every decoder."""

from __future__ import annotations

from dataclasses import dataclass, field

from edidscope.compliance.models import ConformanceState
from edidscope.core.strings import extract_string
from edidscope.models.configuration import DecodeOptions

_NAME_FIELD_LENGTH = 13


class NameAccumulator:
    """Holds the monitor name descriptor for the current base block.

    The name is decoded from a single descriptor slot. A second name
    descriptor is reported as an attempt to continue the name rather
    than being appended.
    """

    def __init__(self) -> None:
        self.name: str | None = None
        self.terminated = False
        self.valid_termination = True

    def feed(self, payload: bytes | memoryview) -> bool:
        """Accept the 13 payload bytes of a name descriptor.

        Returns:
            False if a name was already seen in an earlier slot.
        """
        if self.name is not None:
            return False
        raw = bytes(payload[:_NAME_FIELD_LENGTH])
        self.terminated = b"\n" in raw
        self.name, self.valid_termination = extract_string(raw, _NAME_FIELD_LENGTH)
        return True


@dataclass
class DecodeContext:
    """Conformance state plus the report lines emitted so far."""

    options: DecodeOptions = field(default_factory=DecodeOptions)
    state: ConformanceState = field(default_factory=ConformanceState)
    lines: list[str] = field(default_factory=list)
    names: NameAccumulator = field(default_factory=NameAccumulator)

    def emit(self, line: str = "") -> None:
        self.lines.append(line)

    def emit_all(self, lines: list[str]) -> None:
        self.lines.extend(lines)

    def claims(self, revision: int) -> bool:
        return self.state.claims(revision)
