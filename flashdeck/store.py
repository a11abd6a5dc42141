"""
Multi-keyed card store for flashdeck.

A CardCollection holds cards addressable by several unique properties at
once (e.g. TERM and DEFINITION). Each configured key property gets its own
index, and every index must agree on which cards are present.

Layout:
    _records   - arena: card id -> Record
    _indices   - per key property: value -> card id

A card id is in every index or in none. Mutations check everything first,
then write, so a failed call leaves the collection untouched.

Aliasing rules:
    - add() stores a copy of the submitted record
    - get() and iterate() return snapshots
    - sample() returns the live stored record, so review bookkeeping
      (failure counts) can be written straight onto it. Callers must not
      change key properties through that handle; use update() instead.

Not thread-safe. Concurrent callers must hold one lock around every call.
"""

from __future__ import annotations

import itertools
import logging
import random
from typing import Iterable, Iterator, Optional

from .domain import (
    DuplicateKeyError,
    InvalidArgumentError,
    NotFoundError,
    Property,
    Record,
    clean_value,
)

logger = logging.getLogger(__name__)


class CardCollection:
    """
    A set of cards with one uniqueness index per key property.

    The first key property is the primary key; it defines iteration and
    sampling order (insertion order of the primary index).
    """

    def __init__(self, keys: Iterable[Property], rng: Optional[random.Random] = None):
        """
        Args:
            keys: Ordered key properties; the first is the primary key.
                  Repeats collapse to their first occurrence.
            rng: Random source for sample(). Defaults to a fresh Random.

        Raises:
            InvalidArgumentError: If no keys are given or a key is not a Property
        """
        ordered: list[Property] = []
        for key in keys or ():
            if not isinstance(key, Property):
                raise InvalidArgumentError(f"not a card property: {key!r}")
            if key not in ordered:
                ordered.append(key)
        if not ordered:
            raise InvalidArgumentError("at least one key property is required")

        self._keys: tuple[Property, ...] = tuple(ordered)
        self._records: dict[int, Record] = {}
        self._indices: dict[Property, dict[str, int]] = {k: {} for k in self._keys}
        self._ids = itertools.count()
        self._rng = rng if rng is not None else random.Random()

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    @property
    def key_properties(self) -> tuple[Property, ...]:
        return self._keys

    @property
    def primary_key(self) -> Property:
        return self._keys[0]

    def _require_key(self, key: Property) -> dict[str, int]:
        if key not in self._indices:
            raise InvalidArgumentError(f"{key!r} is not a key property of this collection")
        return self._indices[key]

    def _locate(self, key: Property, value: str) -> int:
        index = self._require_key(key)
        try:
            return index[value]
        except KeyError:
            raise NotFoundError(
                f"no card with {key.name} {value!r}", key=key, value=value
            ) from None

    # =========================================================================
    # MUTATION
    # =========================================================================

    def add(self, record: Record) -> None:
        """
        Add a card.

        Raises:
            DuplicateKeyError: If any key value is already taken. Nothing is
                inserted in that case.
        """
        for key in self._keys:
            value = record.get(key)
            if value in self._indices[key]:
                raise DuplicateKeyError(key, value)

        card_id = next(self._ids)
        stored = record.copy()
        self._records[card_id] = stored
        for key in self._keys:
            self._indices[key][stored.get(key)] = card_id

        logger.debug("added card %d (%s=%r)", card_id, self.primary_key.name,
                     stored.get(self.primary_key))

    def remove(self, key: Property, value: str) -> None:
        """
        Remove the card whose ``key`` property equals ``value``.

        Raises:
            InvalidArgumentError: If ``key`` is not a key property
            NotFoundError: If no card matches
        """
        card_id = self._locate(key, value)
        stored = self._records.pop(card_id)
        for k in self._keys:
            del self._indices[k][stored.get(k)]

        logger.debug("removed card %d (%s=%r)", card_id, key.name, value)

    def update(self, key: Property, value: str, prop: Property, new_value: str) -> None:
        """
        Set ``prop`` to ``new_value`` on the card found by ``key``/``value``.

        Updating a key property re-points its index; the new value must not
        belong to another card.

        Raises:
            InvalidArgumentError: If ``key`` is not a key property
            NotFoundError: If no card matches
            DuplicateKeyError: If a new key value is taken by another card
        """
        card_id = self._locate(key, value)
        stored = self._records[card_id]

        if prop not in self._indices:
            stored.set(prop, new_value)
            return

        index = self._indices[prop]
        cleaned = clean_value(new_value)
        owner = index.get(cleaned)
        if owner is not None and owner != card_id:
            raise DuplicateKeyError(prop, cleaned)

        del index[stored.get(prop)]
        stored.set(prop, cleaned)
        index[cleaned] = card_id

    # =========================================================================
    # QUERIES
    # =========================================================================

    def contains(self, prop: Property, value: str) -> bool:
        """
        Check whether any card has ``prop`` equal to ``value``.

        Key properties use their index; other properties scan every card.
        """
        index = self._indices.get(prop)
        if index is not None:
            return value in index
        return any(r.get(prop) == value for r in self._records.values())

    def get(self, key: Property, value: str) -> Record:
        """
        Return a snapshot of the card found by ``key``/``value``.

        Raises:
            InvalidArgumentError: If ``key`` is not a key property
            NotFoundError: If no card matches
        """
        return self._records[self._locate(key, value)].copy()

    def sample(self) -> Record:
        """
        Return a uniformly random card.

        The card is the live stored record, not a snapshot.

        Raises:
            NotFoundError: If the collection is empty
        """
        size = self.size()
        if size == 0:
            raise NotFoundError("empty collection")
        position = self._rng.randrange(size)
        card_id = next(itertools.islice(self._indices[self.primary_key].values(), position, None))
        return self._records[card_id]

    def size(self) -> int:
        return len(self._indices[self.primary_key])

    def iterate(self) -> Iterator[Record]:
        """Yield a snapshot of every card, in primary-key order."""
        for card_id in list(self._indices[self.primary_key].values()):
            stored = self._records.get(card_id)
            if stored is not None:
                yield stored.copy()

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[Record]:
        return self.iterate()

    def __repr__(self) -> str:
        keys = ", ".join(k.name for k in self._keys)
        return f"CardCollection(keys=[{keys}], size={self.size()})"
