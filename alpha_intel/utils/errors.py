"""
ALPHA INTEL — Error Types
Raised inside adapters and feed clients; converted to error-tagged values at
the aggregation boundary so a single upstream never aborts a report.
"""
from typing import Optional


class AlphaIntelError(Exception):
    """Base class for all service errors."""


class SourceError(AlphaIntelError):
    """An upstream data source failed or returned unusable data."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class OracleDecodeError(SourceError):
    """The oracle contract result did not contain a decodable price."""

