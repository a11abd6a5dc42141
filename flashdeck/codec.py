"""
Collection file format for flashdeck.

A collection file is plain text, one value per line:

    Card Collections                <- header
    2                               <- number of cards
    TERM DEFINITION                 <- key properties, primary key first
    TERM DEFINITION FAILURE         <- every property, in file order
    hello                           <- card 1, one line per property
    hola
    0
    ...                             <- card 2, ...

Import is strict and all-or-nothing: any structural problem raises
CollectionImportError and no collection is returned.
"""

from __future__ import annotations

import logging
import random
import re
from enum import Enum
from typing import Optional

from .domain import (
    PROPERTIES,
    DuplicateKeyError,
    FlashdeckError,
    InvalidArgumentError,
    Property,
    Record,
)
from .store import CardCollection

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

HEADER = "Card Collections"
ENCODING = "utf-8"
COUNT_PATTERN = re.compile(r"[0-9]+")


# =============================================================================
# IMPORT ERRORS
# =============================================================================

class ImportFailure(Enum):
    """Why a collection file was rejected."""
    WRONG_HEADER = "wrong_header"
    BAD_COUNT = "bad_count"
    NO_KEYS = "no_keys"
    UNKNOWN_PROPERTY = "unknown_property"
    DUPLICATE_KEY_NAME = "duplicate_key_name"
    WRONG_PROPERTY_COUNT = "wrong_property_count"
    DUPLICATE_PROPERTY_NAME = "duplicate_property_name"
    TRUNCATED = "truncated"
    DUPLICATE_RECORD = "duplicate_record"
    NOT_TEXT = "not_text"


class CollectionImportError(FlashdeckError):
    """Raised when a collection file is malformed or corrupted."""

    def __init__(self, reason: ImportFailure, detail: str, line: Optional[int] = None):
        self.reason = reason
        self.detail = detail
        self.line = line
        where = f" (line {line})" if line is not None else ""
        super().__init__(f"[{reason.value}] {detail}{where}")


# =============================================================================
# EXPORT
# =============================================================================

def serialize(collection: CardCollection) -> str:
    """Render a collection in the collection file format."""
    lines = [
        HEADER,
        str(collection.size()),
        " ".join(k.name for k in collection.key_properties),
        " ".join(p.name for p in PROPERTIES),
    ]
    for record in collection.iterate():
        lines.extend(record.get(p) for p in PROPERTIES)
    return "\n".join(lines) + "\n"


def export_collection(collection: CardCollection, path: str) -> int:
    """
    Write a collection to ``path``.

    Returns:
        Number of cards written

    Raises:
        OSError: If the file cannot be written
    """
    text = serialize(collection)
    # newline="" keeps a stored "\r" from being rewritten
    with open(path, "w", encoding=ENCODING, newline="") as fh:
        fh.write(text)
    logger.debug("exported %d cards to %s", collection.size(), path)
    return collection.size()


# =============================================================================
# IMPORT
# =============================================================================

def _parse_property_names(
    line: str,
    line_no: int,
    duplicate_reason: ImportFailure,
) -> list[Property]:
    """Parse a space-separated list of distinct property names."""
    names: list[Property] = []
    for token in line.split():
        try:
            prop = Property[token]
        except KeyError:
            raise CollectionImportError(
                ImportFailure.UNKNOWN_PROPERTY,
                f"unknown property name {token!r}",
                line_no,
            ) from None
        if prop in names:
            raise CollectionImportError(
                duplicate_reason,
                f"property {token} listed twice",
                line_no,
            )
        names.append(prop)
    return names


def _parse_count(line: str, line_no: int) -> int:
    # ASCII digits only: no sign, padding, underscores or other numerals
    if not COUNT_PATTERN.fullmatch(line):
        raise CollectionImportError(
            ImportFailure.BAD_COUNT,
            f"card count {line!r} is not a non-negative integer",
            line_no,
        )
    return int(line)


def deserialize(text: str, rng: Optional[random.Random] = None) -> CardCollection:
    """
    Parse collection file text into a new CardCollection.

    The returned collection is keyed exactly as the file's key line says.
    ``rng`` is handed to the collection for sampling.

    Raises:
        CollectionImportError: If the text is not a valid collection file
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    if len(lines) < 4:
        if lines and lines[0] != HEADER:
            raise CollectionImportError(
                ImportFailure.WRONG_HEADER, f"expected {HEADER!r}, got {lines[0]!r}", 1
            )
        raise CollectionImportError(
            ImportFailure.TRUNCATED, f"file ends inside the header ({len(lines)} lines)"
        )

    header, count_line, key_line, property_line = lines[:4]

    if header != HEADER:
        raise CollectionImportError(
            ImportFailure.WRONG_HEADER, f"expected {HEADER!r}, got {header!r}", 1
        )

    count = _parse_count(count_line, 2)

    keys = _parse_property_names(key_line, 3, ImportFailure.DUPLICATE_KEY_NAME)
    if not keys:
        raise CollectionImportError(ImportFailure.NO_KEYS, "no key properties listed", 3)

    file_properties = _parse_property_names(
        property_line, 4, ImportFailure.DUPLICATE_PROPERTY_NAME
    )
    if len(file_properties) != len(PROPERTIES):
        raise CollectionImportError(
            ImportFailure.WRONG_PROPERTY_COUNT,
            f"expected {len(PROPERTIES)} properties, got {len(file_properties)}",
            4,
        )

    body = lines[4:]
    needed = count * len(file_properties)
    if len(body) < needed:
        raise CollectionImportError(
            ImportFailure.TRUNCATED,
            f"{count} cards need {needed} value lines, found {len(body)}",
        )

    try:
        collection = CardCollection(keys, rng=rng)
    except InvalidArgumentError as e:
        raise CollectionImportError(ImportFailure.NO_KEYS, str(e), 3) from e

    width = len(file_properties)
    for i in range(count):
        chunk = body[i * width:(i + 1) * width]
        record = Record()
        for prop, value in zip(file_properties, chunk):
            record.set(prop, value)
        try:
            collection.add(record)
        except DuplicateKeyError as e:
            raise CollectionImportError(
                ImportFailure.DUPLICATE_RECORD,
                f"card {i + 1} repeats {e.key.name} {e.value!r}",
                5 + i * width,
            ) from e

    return collection


def import_collection(path: str, rng: Optional[random.Random] = None) -> CardCollection:
    """
    Read a collection file from ``path``.

    Raises:
        OSError: If the file cannot be read
        CollectionImportError: If the file is malformed
    """
    try:
        with open(path, "r", encoding=ENCODING, newline="") as fh:
            text = fh.read()
    except UnicodeDecodeError as e:
        logger.warning("rejected collection file %s: not %s text", path, ENCODING)
        raise CollectionImportError(ImportFailure.NOT_TEXT, f"not {ENCODING} text") from e

    try:
        collection = deserialize(text, rng=rng)
    except CollectionImportError as e:
        logger.warning("rejected collection file %s: %s", path, e)
        raise
    logger.debug("imported %d cards from %s", collection.size(), path)
    return collection
