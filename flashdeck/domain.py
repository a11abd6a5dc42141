"""
Core Domain Objects for flashdeck.

The property schema is fixed: every card carries the same set of
string-valued properties, in the same order. That order is shared by the
Record, the CardCollection and the file codec.

Domain Objects:
    Property    - One named field of a card
    Record      - A mutable card with one string value per Property

Errors:
    FlashdeckError         - Base class for every error raised here
    InvalidArgumentError   - Bad configuration, or a non-key used as a key
    DuplicateKeyError      - A key value is already taken
    NotFoundError          - Lookup or removal of a missing card
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional


# =============================================================================
# PROPERTY SCHEMA
# =============================================================================

class Property(Enum):
    """
    The fixed set of card properties.

    Member names double as the tokens written to collection files.
    """
    TERM = "term"
    DEFINITION = "definition"
    FAILURE = "failure"


# Canonical property order
PROPERTIES: tuple[Property, ...] = tuple(Property)


# =============================================================================
# ERRORS
# =============================================================================

class FlashdeckError(Exception):
    """Base error for this package."""


class InvalidArgumentError(FlashdeckError, ValueError):
    """Raised for bad store configuration or a non-key property used as a key."""


class DuplicateKeyError(FlashdeckError):
    """Raised when a card would share a key value with a stored card."""

    def __init__(self, key: Property, value: str):
        self.key = key
        self.value = value
        super().__init__(f"duplicate {key.name} value: {value!r}")


class NotFoundError(FlashdeckError, LookupError):
    """Raised when no card matches a lookup."""

    def __init__(self, message: str, key: Optional[Property] = None, value: Optional[str] = None):
        self.key = key
        self.value = value
        super().__init__(message)


# =============================================================================
# RECORD
# =============================================================================

def clean_value(value: str) -> str:
    # Collection files are line-oriented: one value per line
    return value.replace("\n", " ")


@dataclass
class Record:
    """
    A single card.

    Holds one string per Property, defaulting to "". Values never contain
    a newline; assigning one replaces it with a space.

    Records compare by value. ``copy()`` returns an independent card.
    Values change only through ``set()``; ``as_dict()`` is the read-only view.
    """
    _values: dict[Property, str] = field(default_factory=dict)

    def __post_init__(self):
        given = self._values
        self._values = {p: "" for p in PROPERTIES}
        for prop, value in given.items():
            self.set(prop, value)

    @classmethod
    def of(cls, values: Optional[Mapping[Property, str]] = None, **by_name: str) -> Record:
        """
        Build a record from a mapping and/or property-name keywords.

            Record.of({Property.TERM: "hi"})
            Record.of(TERM="hi", DEFINITION="hello")
        """
        record = cls()
        for prop, value in (values or {}).items():
            record.set(prop, value)
        for name, value in by_name.items():
            record.set(Property[name], value)
        return record

    def get(self, prop: Property) -> str:
        return self._values.get(prop, "")

    def set(self, prop: Property, value: str) -> None:
        if not isinstance(prop, Property):
            raise InvalidArgumentError(f"not a card property: {prop!r}")
        self._values[prop] = clean_value(str(value))

    def copy(self) -> Record:
        """Return a snapshot sharing no state with this record."""
        return Record(dict(self._values))

    def as_dict(self) -> dict[str, str]:
        """Property name -> value, in canonical order."""
        return {p.name: self._values[p] for p in PROPERTIES}
