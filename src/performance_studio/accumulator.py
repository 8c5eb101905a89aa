"""Instruction accumulator -- the ordered instructions for the current text.

Insertion order is significant: renderers use it as the tie-break and,
for the parameter strategy, as the "most recent wins" signal.  No
deduplication or merging happens here; conflicting instructions simply
coexist and the renderer resolves them.
"""

from __future__ import annotations

import logging
from typing import Iterator

from .models import PerformanceInstruction

logger = logging.getLogger(__name__)


class InstructionAccumulator:
    """Ordered, append-only collection bound to one sacred text.

    Binding a different text via :meth:`rebind` empties the collection,
    since instructions only make sense against the text they were
    derived from.
    """

    def __init__(self, text: str = "") -> None:
        self._text = text
        self._instructions: list[PerformanceInstruction] = []

    @property
    def text(self) -> str:
        return self._text

    def append(self, instruction: PerformanceInstruction) -> None:
        self._instructions.append(instruction)
        logger.debug("Appended instruction #%d: %s", len(self._instructions), instruction)

    def clear(self) -> None:
        self._instructions.clear()

    def rebind(self, text: str) -> bool:
        """Bind *text*; clear if it differs from the bound text.

        Returns ``True`` when the instructions were cleared.
        """
        if text == self._text:
            return False
        self._text = text
        had_instructions = bool(self._instructions)
        self.clear()
        if had_instructions:
            logger.info("Sacred text changed; cleared accumulated instructions")
        return True

    def snapshot(self) -> tuple[PerformanceInstruction, ...]:
        """Immutable copy of the current instructions."""
        return tuple(self._instructions)

    def __iter__(self) -> Iterator[PerformanceInstruction]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        return len(self._instructions)

    def __bool__(self) -> bool:
        return bool(self._instructions)
