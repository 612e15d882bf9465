"""
Tama Learn - Errors

Failures that reach the caller. Precondition misses (dead, asleep, too
tired) are not errors: the reducers hand back the unchanged state.
"""


class TamaError(Exception):
    """Base class for every error raised by the engine."""


class KnowledgeError(TamaError):
    """Knowledge could not be ingested."""


class FetchError(KnowledgeError):
    """A remote page could not be fetched or decoded."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"could not fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class KnowledgeReadError(KnowledgeError):
    """A local knowledge file could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"could not read {path}: {reason}")
        self.path = path
        self.reason = reason


class AIError(TamaError):
    """The chat provider call failed."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider} chat failed: {reason}")
        self.provider = provider
        self.reason = reason


class InvalidCardError(TamaError):
    """A visitor card could not be parsed or has the wrong shape."""


class PersistenceError(TamaError):
    """The save document could not be read or written."""
