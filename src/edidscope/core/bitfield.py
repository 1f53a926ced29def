"""Declarative bitfield decode tables.

A field maps a bit range of a byte or word to a table of labelled values.
Decoding never mutates its input and always emits fields in table order.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldValue:
    """A labelled raw value of a bitfield."""

    value: int
    label: str


@dataclass(frozen=True)
class BitField:
    """A named bitfield spanning bits ``start``..``end`` (inclusive)."""

    name: str
    start: int
    end: int
    values: tuple[FieldValue, ...] = ()

    @property
    def width(self) -> int:
        return self.end - self.start + 1

    def extract(self, word: int) -> int:
        """Extract the raw field value from a data word."""
        if self.width >= 32:
            return word
        return (word >> self.start) & ((1 << self.width) - 1)

    def label_for(self, raw: int) -> str | None:
        for v in self.values:
            if v.value == raw:
                return v.label
        return None


def define_field(name: str, start: int, end: int, *values: tuple[int, str]) -> BitField:
    """Build a BitField from ``(raw, label)`` pairs."""
    return BitField(name, start, end, tuple(FieldValue(v, label) for v, label in values))


def decode_value(field: BitField, raw: int, prefix: str = "") -> str:
    """Format one raw value as ``name: label (raw)`` or ``name: raw``."""
    label = field.label_for(raw)
    if label is None:
        return f"{prefix}{field.name}: {raw}"
    return f"{prefix}{field.name}: {label} ({raw})"


def decode_fields(fields: tuple[BitField, ...] | list[BitField], word: int, prefix: str = "") -> list[str]:
    """Decode every field of ``fields`` against ``word``.

    Args:
        fields: Field specifications, emitted in this order.
        word: Data byte or word the fields are extracted from.
        prefix: Indentation prepended to every line.

    Returns:
        One formatted line per field.
    """
    return [decode_value(f, f.extract(word), prefix) for f in fields]
