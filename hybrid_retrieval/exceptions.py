"""Custom exception hierarchy for the hybrid retrieval engine."""


class RetrievalError(Exception):
    """Base exception for retrieval engine errors."""


class ConfigError(RetrievalError):
    """Raised when configuration is invalid or incomplete."""


class CorpusError(RetrievalError):
    """Raised when a corpus file cannot be turned into documents."""


class InvalidArgumentError(RetrievalError, ValueError):
    """Raised when a caller passes an argument the operation cannot accept.

    The condition is recoverable: the indexes are untouched and the caller may
    reject the request or retry with corrected input.
    """


class DimensionMismatchError(RetrievalError, ValueError):
    """Raised when two embedding vectors of different lengths are compared."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Embedding dimension mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class EmbeddingError(RetrievalError):
    """Raised when the embedding provider reports an error or a malformed payload."""


class SnapshotError(RetrievalError):
    """Raised when a persisted index artifact is missing or corrupt."""


class SnapshotConsistencyError(SnapshotError):
    """Raised when persisted artifacts disagree on cardinality or document ids."""
