"""
Race Insights Module

Ordered, display-ready findings for a session view.

Modules:
- generator: Field ranking, head-to-head, fuel, history and qualifying insights
- formatting: Lap time, ordinal and signed delta formatting

Usage:
    from race_insights.insights import generate_session_insights

    insights = generate_session_insights(session, player, rival=rival, pbs=pbs)
"""

from .formatting import ms_to_lap_time, ordinal, plural, signed_seconds
from .generator import (
    Insight,
    InsightType,
    generate_fuel_insights,
    generate_insights,
    generate_quali_history_insights,
    generate_quali_insights,
    generate_race_history_insights,
    generate_session_insights,
)

__all__ = [
    'ms_to_lap_time',
    'ordinal',
    'plural',
    'signed_seconds',
    'Insight',
    'InsightType',
    'generate_fuel_insights',
    'generate_insights',
    'generate_quali_history_insights',
    'generate_quali_insights',
    'generate_race_history_insights',
    'generate_session_insights',
]
