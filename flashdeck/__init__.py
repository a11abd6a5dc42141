# flashdeck: personal flashcard manager
# Core: multi-keyed card store and collection file format

"""
Core invariant: a card's key values are unique across the collection, and
a card is present in every key index or in none.

This package implements the card store, the file codec that persists it,
and the interactive command-line program built on both.
"""
