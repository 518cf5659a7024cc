"""Exception hierarchy for the ingestion pipeline and event stores."""


class HistorySyncError(Exception):
    """Base class for all History Sync errors."""


class IngestionError(HistorySyncError):
    """An upload could not be ingested."""


class UploadTooLargeError(IngestionError):
    """Upload exceeds the configured size limit; parsing never starts."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Upload of {size} bytes exceeds limit of {limit} bytes")
        self.size = size
        self.limit = limit


class EmptyDocumentError(IngestionError):
    """Upload holds no content that any format could use."""


class StoreError(HistorySyncError):
    """The event store failed to read or write."""


class GitHubSyncError(HistorySyncError):
    """The GitHub events API could not be read."""
