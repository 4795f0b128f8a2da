"""
Exceptions raised by race_insights

Insufficient data is never an error in this library: aggregates return 0,
None or an empty list instead. Exceptions are reserved for structurally
invalid input rejected at the ingestion boundary.
"""


class RaceInsightsError(Exception):
    """Base class for all race_insights errors"""


class TelemetryFormatError(RaceInsightsError, ValueError):
    """Raised when a session payload cannot be parsed into the data model"""
