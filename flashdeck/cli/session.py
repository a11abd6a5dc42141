"""
Interactive review session for flashdeck.

Reads one command per line and runs it against the current collection:

    add, remove, import, export, ask, exit, log, hardest card, reset stats

Every line printed and every line typed is also appended to the
session's ActionLog, so a `log` command can save a full transcript.
"""

from __future__ import annotations

import logging
import random
import sys
from typing import Optional, TextIO

from ..action_log import ActionLog
from ..codec import CollectionImportError, export_collection, import_collection
from ..domain import (
    DuplicateKeyError,
    InvalidArgumentError,
    NotFoundError,
    Property,
    Record,
)
from ..store import CardCollection

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

DEFAULT_KEYS = (Property.TERM, Property.DEFINITION)

PROMPT = "Input the action (add, remove, import, export, ask, exit, log, hardest card, reset stats):"


class EndOfInput(Exception):
    """Raised when the input stream is exhausted."""


def failure_count(record: Record) -> int:
    """Read a card's failure counter. Empty or unparseable counts as 0."""
    raw = record.get(Property.FAILURE).strip()
    try:
        return max(int(raw), 0) if raw else 0
    except ValueError:
        return 0


# =============================================================================
# SESSION
# =============================================================================

class Session:
    """
    One run of the interactive program.

    Holds the current collection (replaced wholesale by a successful
    import), the action log and the console streams.
    """

    def __init__(
        self,
        collection: Optional[CardCollection] = None,
        action_log: Optional[ActionLog] = None,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        export_path: str = "",
        log_path: str = "",
        rng: Optional[random.Random] = None,
    ):
        self._rng = rng
        self.collection = collection if collection is not None else self.new_collection()
        self.action_log = action_log if action_log is not None else ActionLog()
        self._stdin = stdin
        self._stdout = stdout
        self.export_path = export_path
        self.log_path = log_path

        self._commands = {
            "add": self.cmd_add,
            "remove": self.cmd_remove,
            "import": self.cmd_import,
            "export": self.cmd_export,
            "ask": self.cmd_ask,
            "log": self.cmd_log,
            "hardest card": self.cmd_hardest_card,
            "reset stats": self.cmd_reset_stats,
        }

    def new_collection(self) -> CardCollection:
        return CardCollection(DEFAULT_KEYS, rng=self._rng)

    # =========================================================================
    # CONSOLE I/O
    # =========================================================================

    def output(self, text: str) -> None:
        """Print ``text`` as-is and record it in the action log."""
        (self._stdout or sys.stdout).write(text)
        self.action_log.log(text)

    def read_line(self) -> str:
        """
        Read one line of user input and record it in the action log.

        Raises:
            EndOfInput: If the input stream is exhausted
        """
        line = (self._stdin or sys.stdin).readline()
        if line == "":
            raise EndOfInput()
        line = line.rstrip("\n")
        self.action_log.log(f"{line}\n")
        return line

    def ask_for(self, question: str) -> str:
        self.output(f"{question}\n> ")
        return self.read_line()

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    def run(self, import_path: str = "") -> int:
        """
        Run the command loop until `exit` or end of input.

        Returns:
            Process exit status
        """
        if import_path:
            self.load(import_path)

        while True:
            try:
                command = self.ask_for(PROMPT)
            except EndOfInput:
                break

            if command == "exit":
                break

            handler = self._commands.get(command)
            if handler is None:
                self.output("Illegal command!\n\n")
                continue

            try:
                handler()
            except EndOfInput:
                break

        self.cmd_exit()
        return 0

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def cmd_exit(self) -> None:
        self.output("Bye bye!\n\n")
        if self.export_path:
            self.save(self.export_path)
        if self.log_path:
            self.save_log(self.log_path)

    def cmd_add(self) -> None:
        term = self.ask_for("The card:")
        if self.collection.contains(Property.TERM, term):
            self.output(f'The card "{term}" already exists.\n\n')
            return

        definition = self.ask_for("The definition of card:")
        if self.collection.contains(Property.DEFINITION, definition):
            self.output(f'The definition "{definition}" already exists.\n\n')
            return

        card = Record.of({Property.TERM: term, Property.DEFINITION: definition})
        try:
            self.collection.add(card)
        except DuplicateKeyError as e:
            self.output(f'The card "{term}" conflicts with an existing card ({e.key.name}).\n\n')
            return
        self.output(f'The pair ("{card.get(Property.TERM)}":"{card.get(Property.DEFINITION)}") has been added.\n\n')

    def cmd_remove(self) -> None:
        term = self.ask_for("The card:")
        try:
            self._remove_term(term)
        except NotFoundError:
            self.output(f"Can't remove \"{term}\": there is no such card.\n\n")
            return
        self.output("The card has been removed.\n\n")

    def _remove_term(self, term: str) -> None:
        if Property.TERM in self.collection.key_properties:
            self.collection.remove(Property.TERM, term)
            return
        # TERM is not indexed in this collection; go through the primary key
        primary = self.collection.primary_key
        for card in self.collection.iterate():
            if card.get(Property.TERM) == term:
                self.collection.remove(primary, card.get(primary))
                return
        raise NotFoundError(f"no card with TERM {term!r}", Property.TERM, term)

    def cmd_import(self) -> None:
        path = self.ask_for("File name:")
        self.load(path)

    def cmd_export(self) -> None:
        path = self.ask_for("File name:")
        self.save(path)

    def cmd_log(self) -> None:
        path = self.ask_for("File name:")
        self.save_log(path)

    def cmd_ask(self) -> None:
        if self.collection.size() == 0:
            self.output("There is no card to ask.\n\n")
            return

        raw = self.ask_for("How many times to ask?")
        try:
            times = int(raw)
        except ValueError:
            times = 0
        if times <= 0:
            self.output("Illegal argument: please enter a positive integer.\n\n")
            return

        for _ in range(times):
            card = self.collection.sample()
            term = card.get(Property.TERM)
            definition = card.get(Property.DEFINITION)

            answer = self.ask_for(f'Print the definition of "{term}":')
            if answer.lower() == definition.lower():
                self.output("Correct answer.\n")
                continue

            self._count_failure(card)
            other = self._term_for_definition(answer)
            if other is None:
                self.output(f'Wrong answer. The correct one is "{definition}".\n')
            else:
                self.output(
                    f'Wrong answer. The correct one is "{definition}", '
                    f'you\'ve just written the definition of "{other}".\n'
                )
        self.output("\n")

    def _count_failure(self, card: Record) -> None:
        primary = self.collection.primary_key
        try:
            self.collection.update(
                primary, card.get(primary), Property.FAILURE, str(failure_count(card) + 1)
            )
        except DuplicateKeyError as e:
            # FAILURE is a key here and the next count belongs to another card
            logger.warning("failure not counted for %r: %s", card.get(Property.TERM), e)

    def _term_for_definition(self, definition: str) -> Optional[str]:
        try:
            return self.collection.get(Property.DEFINITION, definition).get(Property.TERM)
        except NotFoundError:
            return None
        except InvalidArgumentError:
            pass
        for card in self.collection.iterate():
            if card.get(Property.DEFINITION) == definition:
                return card.get(Property.TERM)
        return None

    def cmd_hardest_card(self) -> None:
        cards = list(self.collection.iterate())
        worst = max((failure_count(c) for c in cards), default=0)
        if worst == 0:
            self.output("There are no cards with errors.\n\n")
            return

        terms = [c.get(Property.TERM) for c in cards if failure_count(c) == worst]
        quoted = ", ".join(f'"{t}"' for t in terms)
        if len(terms) == 1:
            self.output(f"The hardest card is {quoted}. You have {worst} errors answering it.\n\n")
        else:
            self.output(f"The hardest cards are {quoted}. You have {worst} errors answering them.\n\n")

    def cmd_reset_stats(self) -> None:
        primary = self.collection.primary_key
        if Property.FAILURE in self.collection.key_properties and self.collection.size() > 1:
            self.output("Card statistics can't be reset: failure counts must stay unique in this collection.\n\n")
            return
        for card in self.collection.iterate():
            self.collection.update(primary, card.get(primary), Property.FAILURE, "")
        self.output("Card statistics has been reset.\n\n")

    # =========================================================================
    # FILES
    # =========================================================================

    def load(self, path: str) -> bool:
        """Replace the collection with the one stored at ``path``."""
        try:
            loaded = import_collection(path, rng=self._rng)
        except OSError as e:
            logger.info("import from %s failed: %s", path, e)
            self.output("Import failed: file not found.\n\n")
            return False
        except CollectionImportError:
            self.output("Import failed: corrupted import file.\n\n")
            return False

        self.collection = loaded
        self.output(f"{loaded.size()} cards have been loaded.\n\n")
        return True

    def save(self, path: str) -> bool:
        try:
            saved = export_collection(self.collection, path)
        except OSError as e:
            logger.info("export to %s failed: %s", path, e)
            self.output("illegal path.\n\n")
            return False
        self.output(f"{saved} cards have been saved.\n\n")
        return True

    def save_log(self, path: str) -> bool:
        try:
            self.action_log.save(path)
        except OSError as e:
            logger.info("log save to %s failed: %s", path, e)
            self.output("illegal path.\n\n")
            return False
        self.output("The log has been saved.\n\n")
        return True
