"""
Error taxonomy for ReadCore.

Only ``SummarizerError`` ever reaches callers: extraction failures are absorbed
by the strategy chain and cache corruption degrades to a miss.
"""

from __future__ import annotations


class ReadCoreError(Exception):
    """Base class for all ReadCore errors."""


class StrategyError(ReadCoreError):
    """An extraction strategy raised while looking for a candidate."""

    def __init__(self, strategy: str, cause: BaseException) -> None:
        super().__init__(f"Strategy '{strategy}' failed: {cause}")
        self.strategy = strategy
        self.cause = cause


class ValidationFailure(ReadCoreError):
    """A candidate was found but rejected by the significance gate."""

    def __init__(self, strategy: str, text_length: int, word_count: int) -> None:
        super().__init__(
            f"Candidate from '{strategy}' rejected ({text_length} chars, {word_count} words)"
        )
        self.strategy = strategy
        self.text_length = text_length
        self.word_count = word_count


class EmergencyAssemblyFailure(ReadCoreError):
    """The last-resort assembler could not gather enough text."""


class CacheCorruption(ReadCoreError):
    """A stored cache record could not be deserialized."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Corrupt cache record '{key}': {reason}")
        self.key = key
        self.reason = reason


class SummarizerError(ReadCoreError):
    """The external summarizer failed, timed out or returned nothing usable."""
