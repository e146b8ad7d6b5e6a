"""
Failure taxonomy for one source in one pass.
All of these are contained per source by the Runner.
"""

from typing import Optional


class CareerWatchError(Exception):
    """Base class for failures tied to a single source URL."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class FetchFailure(CareerWatchError):
    """The scraper could not produce a snapshot. Nothing is saved or sent."""


class LookupFailure(CareerWatchError):
    """The repository could not be queried for the previous snapshot."""


class DeliveryFailure(CareerWatchError):
    """The notifier could not deliver a change alert."""


class PersistFailure(CareerWatchError):
    """The repository could not store the new snapshot."""
