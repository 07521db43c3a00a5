"""Drop ingestion errors."""


class DropError(Exception):
    """Base exception for drop ingestion failures."""


class NegotiationExhausted(DropError):
    """Raised when no offered identifier could be resolved by any strategy."""


class RepresentationLoadFailed(DropError):
    """Raised when one load strategy fails for one identifier."""

    def __init__(self, identifier: str, strategy: str, reason: str) -> None:
        super().__init__(f"{strategy} load of {identifier!r} failed: {reason}")
        self.identifier = identifier
        self.strategy = strategy
        self.reason = reason


class ClassificationUnknown(DropError):
    """Raised internally when a type identifier has no known classification."""


class NetworkFetchFailed(DropError):
    """Raised when a remote fetch is rejected or the transfer fails."""


class WriteFailed(DropError):
    """Raised when the final artifact cannot be written to disk."""


__all__ = [
    "DropError",
    "NegotiationExhausted",
    "RepresentationLoadFailed",
    "ClassificationUnknown",
    "NetworkFetchFailed",
    "WriteFailed",
]
