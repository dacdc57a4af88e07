# src/headmap_batch/exceptions.py


class HeadmapBatchError(Exception):
    """Base class for operational failures in the batch layer."""


class FetchError(HeadmapBatchError):
    """A document could not be retrieved (invalid URL, timeout, bad status)."""

    def __init__(self, url: str, reason: str, status: int | None = None):
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"Failed to fetch {url}: {reason}")


class FetchCancelled(HeadmapBatchError):
    """The fetch was abandoned because the batch was cancelled."""


class InvalidJobTransition(HeadmapBatchError):
    """A job was moved to a status that its current status does not allow."""


class BatchAlreadyRunning(HeadmapBatchError):
    """start()/run() was called on a controller that is still running a batch."""
