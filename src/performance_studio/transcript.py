"""Speech-to-text consumer.

Recognition engines emit a stream of interim and final results while
the microphone is held.  Only final segments count; when capture ends,
their trimmed concatenation is dispatched once as a feedback utterance.
"""

from __future__ import annotations


class TranscriptBuffer:
    """Collect final recognition segments for one capture session."""

    def __init__(self) -> None:
        self._segments: list[str] = []

    def add_result(self, text: str, is_final: bool) -> None:
        if is_final:
            self._segments.append(text)

    @property
    def pending(self) -> str:
        return "".join(self._segments)

    def finish(self) -> str | None:
        """End the capture session.

        Returns the utterance, or ``None`` if nothing final was heard.
        The buffer is reset either way.
        """
        utterance = "".join(self._segments).strip()
        self._segments.clear()
        return utterance or None
