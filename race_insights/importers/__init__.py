"""
Data Import Module
Converts game-export session documents into the analytics data model.
"""

from .session_importer import (
    SessionImporter,
    find_closest_rival,
    find_fastest_lap_driver,
    find_player,
    find_race_winner,
    find_same_strategy_drivers,
    parse_safety_car_status,
)

__all__ = [
    'SessionImporter',
    'find_closest_rival',
    'find_fastest_lap_driver',
    'find_player',
    'find_race_winner',
    'find_same_strategy_drivers',
    'parse_safety_car_status',
]
