# CLI package for flashdeck
"""
Interactive command-line program for flashdeck.

Commands (typed at the prompt):
    add, remove, import, export, ask, exit, log, hardest card, reset stats
"""
