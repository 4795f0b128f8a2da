"""
F1 Race Insights

Analytics core for recorded F1 game sessions: lap classification, stint
and tyre life analysis, fuel modelling, field rankings, head-to-head deltas
and insight generation.

Packages:
- importers: Session document parsing into the data model
- analysis: Per-driver lap, stint, tyre and fuel analytics; track aggregation
- statistics: Rankings, head-to-head comparisons, sensor reconciliation
- insights: Display-ready findings

Usage:
    from race_insights import SessionImporter, generate_session_insights

    session = SessionImporter().parse_session(payload)
    insights = generate_session_insights(session, session.player)
"""

import logging

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .exceptions import RaceInsightsError, TelemetryFormatError
from .importers import SessionImporter
from .insights import Insight, InsightType, generate_session_insights
from .models import Driver, Session, TrackPersonalBests

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = '0.1.0'

__all__ = [
    'DEFAULT_CONFIG',
    'AnalyticsConfig',
    'RaceInsightsError',
    'TelemetryFormatError',
    'SessionImporter',
    'Insight',
    'InsightType',
    'generate_session_insights',
    'Driver',
    'Session',
    'TrackPersonalBests',
]
