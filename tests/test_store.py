"""
Tests for the multi-keyed CardCollection.

These tests verify:
1. Key uniqueness on every key property
2. All-or-nothing add and remove across indices
3. Snapshot vs live-handle return semantics
4. Uniform sampling
"""

import random
from collections import Counter

import pytest

from flashdeck.domain import (
    DuplicateKeyError,
    InvalidArgumentError,
    NotFoundError,
    Property,
    Record,
)
from flashdeck.store import CardCollection


TERM = Property.TERM
DEFINITION = Property.DEFINITION
FAILURE = Property.FAILURE


# =============================================================================
# TEST FIXTURES
# =============================================================================

def make_card(term: str, definition: str, failure: str = "") -> Record:
    """Helper to create a card."""
    return Record.of(TERM=term, DEFINITION=definition, FAILURE=failure)


@pytest.fixture
def two_key_collection() -> CardCollection:
    cards = CardCollection([TERM, DEFINITION], rng=random.Random(7))
    cards.add(make_card("cat", "gato"))
    cards.add(make_card("dog", "perro"))
    cards.add(make_card("bird", "pajaro"))
    return cards


# =============================================================================
# CONSTRUCTION TESTS
# =============================================================================

class TestConstruction:
    """Test key configuration."""

    def test_empty_keys_rejected(self):
        with pytest.raises(InvalidArgumentError):
            CardCollection([])

    def test_none_keys_rejected(self):
        with pytest.raises(InvalidArgumentError):
            CardCollection(None)

    def test_non_property_key_rejected(self):
        with pytest.raises(InvalidArgumentError):
            CardCollection(["TERM"])

    def test_first_key_is_primary(self):
        cards = CardCollection([DEFINITION, TERM])
        assert cards.primary_key is DEFINITION
        assert cards.key_properties == (DEFINITION, TERM)

    def test_repeated_keys_collapse(self):
        cards = CardCollection([TERM, DEFINITION, TERM])
        assert cards.key_properties == (TERM, DEFINITION)

    def test_starts_empty(self):
        cards = CardCollection([TERM])
        assert cards.size() == 0
        assert len(cards) == 0
        assert list(cards.iterate()) == []


# =============================================================================
# UNIQUENESS TESTS
# =============================================================================

class TestUniqueness:
    """Test that no two cards share a key value."""

    def test_concrete_scenario(self):
        """add, duplicate add, remove, remove again."""
        cards = CardCollection([TERM])

        cards.add(Record.of(TERM="hi", DEFINITION="hello"))
        assert cards.size() == 1

        with pytest.raises(DuplicateKeyError):
            cards.add(Record.of(TERM="hi", DEFINITION="other"))
        assert cards.size() == 1

        cards.remove(TERM, "hi")
        assert cards.size() == 0

        with pytest.raises(NotFoundError):
            cards.remove(TERM, "hi")

    def test_duplicate_on_second_key(self, two_key_collection):
        """A clash on any key rejects the add."""
        with pytest.raises(DuplicateKeyError) as exc_info:
            two_key_collection.add(make_card("kitten", "gato"))

        assert exc_info.value.key is DEFINITION
        assert exc_info.value.value == "gato"

    def test_failed_add_leaves_no_partial_entry(self, two_key_collection):
        """A rejected card is absent from every index."""
        with pytest.raises(DuplicateKeyError):
            two_key_collection.add(make_card("kitten", "gato"))

        assert two_key_collection.size() == 3
        assert not two_key_collection.contains(TERM, "kitten")
        assert two_key_collection.get(DEFINITION, "gato").get(TERM) == "cat"

    def test_non_key_values_may_repeat(self):
        cards = CardCollection([TERM])
        cards.add(make_card("a", "same"))
        cards.add(make_card("b", "same"))
        assert cards.size() == 2

    def test_empty_key_value_is_a_value(self):
        """Two cards with an empty key value collide."""
        cards = CardCollection([TERM, DEFINITION])
        cards.add(make_card("a", ""))
        with pytest.raises(DuplicateKeyError):
            cards.add(make_card("b", ""))

    def test_random_adds_never_break_uniqueness(self):
        """No sequence of adds leaves two cards sharing a key value."""
        rng = random.Random(1234)
        cards = CardCollection([TERM, DEFINITION])

        for _ in range(500):
            before = cards.size()
            card = make_card(str(rng.randrange(40)), str(rng.randrange(40)))
            try:
                cards.add(card)
            except DuplicateKeyError:
                assert cards.size() == before
            else:
                assert cards.size() == before + 1

        records = list(cards.iterate())
        for key in (TERM, DEFINITION):
            values = [r.get(key) for r in records]
            assert len(values) == len(set(values))


# =============================================================================
# REMOVE TESTS
# =============================================================================

class TestRemove:
    """Test atomic removal across every index."""

    def test_remove_by_primary_key(self, two_key_collection):
        two_key_collection.remove(TERM, "dog")

        assert two_key_collection.size() == 2
        assert not two_key_collection.contains(TERM, "dog")
        assert not two_key_collection.contains(DEFINITION, "perro")

    def test_remove_by_secondary_key(self, two_key_collection):
        """Removing via one key clears the card from all keys."""
        two_key_collection.remove(DEFINITION, "perro")

        assert not two_key_collection.contains(TERM, "dog")
        assert not two_key_collection.contains(DEFINITION, "perro")
        assert two_key_collection.size() == 2

    def test_values_reusable_after_remove(self, two_key_collection):
        two_key_collection.remove(TERM, "dog")
        two_key_collection.add(make_card("dog", "perro"))
        assert two_key_collection.size() == 3

    def test_remove_by_non_key_rejected(self, two_key_collection):
        with pytest.raises(InvalidArgumentError):
            two_key_collection.remove(FAILURE, "")
        assert two_key_collection.size() == 3

    def test_remove_missing(self, two_key_collection):
        with pytest.raises(NotFoundError):
            two_key_collection.remove(TERM, "horse")
        assert two_key_collection.size() == 3


# =============================================================================
# QUERY TESTS
# =============================================================================

class TestQueries:
    """Test contains, get and iterate."""

    def test_contains_key_property(self, two_key_collection):
        assert two_key_collection.contains(TERM, "cat")
        assert two_key_collection.contains(DEFINITION, "gato")
        assert not two_key_collection.contains(TERM, "gato")

    def test_contains_non_key_property_scans(self):
        cards = CardCollection([TERM])
        cards.add(make_card("cat", "gato", "3"))

        assert cards.contains(DEFINITION, "gato")
        assert cards.contains(FAILURE, "3")
        assert not cards.contains(FAILURE, "4")

    def test_get_returns_snapshot(self, two_key_collection):
        """Mutating the result of get() does not touch the store."""
        snapshot = two_key_collection.get(TERM, "cat")
        snapshot.set(TERM, "changed")
        snapshot.set(FAILURE, "99")

        assert two_key_collection.contains(TERM, "cat")
        assert two_key_collection.get(TERM, "cat").get(FAILURE) == ""

    def test_get_errors(self, two_key_collection):
        with pytest.raises(InvalidArgumentError):
            two_key_collection.get(FAILURE, "")
        with pytest.raises(NotFoundError):
            two_key_collection.get(TERM, "horse")

    def test_added_record_is_not_aliased(self):
        """Changing a record after add() does not corrupt the indices."""
        cards = CardCollection([TERM])
        card = make_card("cat", "gato")
        cards.add(card)

        card.set(TERM, "dog")

        assert cards.contains(TERM, "cat")
        assert not cards.contains(TERM, "dog")

    def test_iterate_visits_each_card_once(self, two_key_collection):
        terms = [r.get(TERM) for r in two_key_collection.iterate()]
        assert sorted(terms) == ["bird", "cat", "dog"]

    def test_iterate_follows_insertion_order(self, two_key_collection):
        terms = [r.get(TERM) for r in two_key_collection]
        assert terms == ["cat", "dog", "bird"]

    def test_iterate_is_one_shot(self, two_key_collection):
        iterator = two_key_collection.iterate()
        assert len(list(iterator)) == 3
        assert list(iterator) == []

    def test_iterate_yields_snapshots(self, two_key_collection):
        for record in two_key_collection.iterate():
            record.set(FAILURE, "5")
        assert not two_key_collection.contains(FAILURE, "5")

    def test_remove_during_iteration(self, two_key_collection):
        """Removing cards while iterating does not raise."""
        for record in two_key_collection.iterate():
            two_key_collection.remove(TERM, record.get(TERM))
        assert two_key_collection.size() == 0


# =============================================================================
# UPDATE TESTS
# =============================================================================

class TestUpdate:
    """Test the explicit mutator."""

    def test_update_non_key_property(self, two_key_collection):
        two_key_collection.update(TERM, "cat", FAILURE, "4")
        assert two_key_collection.get(TERM, "cat").get(FAILURE) == "4"

    def test_update_key_property_reindexes(self, two_key_collection):
        two_key_collection.update(TERM, "cat", DEFINITION, "michi")

        assert two_key_collection.contains(DEFINITION, "michi")
        assert not two_key_collection.contains(DEFINITION, "gato")
        assert two_key_collection.get(DEFINITION, "michi").get(TERM) == "cat"
        assert two_key_collection.size() == 3

    def test_update_key_to_taken_value_rejected(self, two_key_collection):
        with pytest.raises(DuplicateKeyError):
            two_key_collection.update(TERM, "cat", DEFINITION, "perro")

        assert two_key_collection.get(TERM, "cat").get(DEFINITION) == "gato"
        assert two_key_collection.get(TERM, "dog").get(DEFINITION) == "perro"

    def test_update_key_to_same_value(self, two_key_collection):
        two_key_collection.update(TERM, "cat", TERM, "cat")
        assert two_key_collection.contains(TERM, "cat")

    def test_update_strips_newlines(self, two_key_collection):
        two_key_collection.update(TERM, "cat", TERM, "big\ncat")
        assert two_key_collection.contains(TERM, "big cat")

    def test_update_missing(self, two_key_collection):
        with pytest.raises(NotFoundError):
            two_key_collection.update(TERM, "horse", FAILURE, "1")


# =============================================================================
# SAMPLING TESTS
# =============================================================================

class TestSample:
    """Test random selection."""

    def test_sample_empty(self):
        with pytest.raises(NotFoundError):
            CardCollection([TERM]).sample()

    def test_sample_returns_live_record(self, two_key_collection):
        """Writes to a sampled card are visible in the store."""
        card = two_key_collection.sample()
        card.set(FAILURE, "1")

        term = card.get(TERM)
        assert two_key_collection.get(TERM, term).get(FAILURE) == "1"

    def test_sample_has_no_side_effects(self, two_key_collection):
        before = [r.as_dict() for r in two_key_collection.iterate()]
        for _ in range(20):
            two_key_collection.sample()
        after = [r.as_dict() for r in two_key_collection.iterate()]
        assert before == after

    def test_sample_is_uniform(self):
        """Each card's frequency converges to 1/size."""
        cards = CardCollection([TERM], rng=random.Random(42))
        for term in ("a", "b", "c", "d"):
            cards.add(make_card(term, term.upper()))

        draws = 20000
        counts = Counter(cards.sample().get(TERM) for _ in range(draws))

        assert set(counts) == {"a", "b", "c", "d"}
        for term in counts:
            assert abs(counts[term] / draws - 0.25) < 0.02

    def test_sample_single_card(self):
        cards = CardCollection([TERM])
        cards.add(make_card("only", "one"))
        assert cards.sample().get(TERM) == "only"
