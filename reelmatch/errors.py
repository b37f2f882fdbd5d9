"""Exception types raised by reelmatch."""


class ReelmatchError(Exception):
    """Base class for reelmatch errors."""
    pass


class ConfigError(ReelmatchError):
    """Configuration is missing or invalid."""
    pass


class ContentNotFoundError(ReelmatchError):
    """A content id is not present in the store."""

    def __init__(self, content_id: str):
        super().__init__(f"Content item not found: {content_id}")
        self.content_id = content_id


class StoreError(ReelmatchError):
    """The content store rejected a read or write."""
    pass


class ExternalServiceError(ReelmatchError):
    """An external API call failed."""
    pass


class AIMatchError(ExternalServiceError):
    """The generative model failed or returned an unusable answer."""
    pass


class VectorIndexError(ExternalServiceError):
    """The vector index rejected an upsert or query."""
    pass
