"""Versioning ledger -- append-only history of generation attempts."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from .models import PerformanceInstruction, Version

logger = logging.getLogger(__name__)


class VersionLedger:
    """Append-only record of committed :class:`Version` objects.

    Ordinals start at 1 and increase by exactly 1 per commit.  Entries
    are never removed.
    """

    def __init__(self) -> None:
        self._versions: list[Version] = []

    def commit(
        self,
        text: str,
        instructions: Iterable[PerformanceInstruction],
        audio: bytes,
        media_type: str = "audio/mpeg",
        voice_id: str | None = None,
        model_id: str | None = None,
    ) -> Version:
        """Append a new version and return it.

        *instructions* is copied, so later changes to the live
        accumulator do not reach the committed version.
        """
        version = Version(
            ordinal=len(self._versions) + 1,
            text=text,
            instructions=tuple(instructions),
            audio=audio,
            media_type=media_type,
            voice_id=voice_id,
            model_id=model_id,
        )
        self._versions.append(version)
        logger.info(
            "Committed version %d (%d instructions, %d audio bytes)",
            version.ordinal, len(version.instructions), len(audio),
        )
        return version

    @property
    def latest(self) -> Version | None:
        return self._versions[-1] if self._versions else None

    def get(self, ordinal: int) -> Version:
        """Return the version with *ordinal*.

        Raises :class:`KeyError` if no such version exists.
        """
        if 1 <= ordinal <= len(self._versions):
            return self._versions[ordinal - 1]
        raise KeyError(ordinal)

    def __iter__(self) -> Iterator[Version]:
        return iter(tuple(self._versions))

    def __len__(self) -> int:
        return len(self._versions)
