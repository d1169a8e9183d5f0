# src/threadcore/generation/fallback.py
"""Degraded-response policy applied when the LLM cannot answer."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DegradedResponsePolicy:
    """
    The single place that decides what users see when generation fails.

    Attributes:
        reply_text: Assistant reply substituted for a failed turn.
        title_words: Number of leading words of the seed used as a title.
        empty_title: Title used when the seed has no words at all.
    """

    reply_text: str = "I'm having trouble responding right now."
    title_words: int = 3
    empty_title: str = "New conversation"

    def title_for(self, seed_message: str) -> str:
        """Deterministic title: the first ``title_words`` words of the seed."""
        words = seed_message.split()
        if not words:
            return self.empty_title
        return " ".join(words[: self.title_words])
