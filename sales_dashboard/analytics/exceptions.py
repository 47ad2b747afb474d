"""
Analytics Exceptions
"""

from typing import Optional


class AnalyticsError(Exception):
    """Base class for sales analytics failures"""


class InvalidQueryError(AnalyticsError):
    """Client supplied filters that cannot be normalized (HTTP 400)"""


class AggregationError(AnalyticsError):
    """
    A channel aggregation failed against the data source (HTTP 500).

    Aborts the whole request; no partial channel breakdown is returned.
    """

    def __init__(self, channel: str, message: str, operation: Optional[str] = None):
        self.channel = channel
        self.operation = operation
        super().__init__(message)
