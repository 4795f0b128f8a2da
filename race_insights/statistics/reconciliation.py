"""
Sensor Reconciliation

Resolves one logical value reported by two telemetry sources that may
disagree. Top speed is reported both as a session-level summary and as a
per-lap sample; either can carry a single-lap glitch far outside the
driver's normal range.

Usage:
    reconciler = TopSpeedReconciler()
    reading = reconciler.reconcile(driver.top_speed_kmph, per_lap_speeds)
    reading.value, reading.quality
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

import numpy as np

from ..config import TOP_SPEED_GLITCH_MULTIPLIER

logger = logging.getLogger(__name__)


class ReadingQuality(Enum):
    VERIFIED = "verified"  # Checked against per-lap samples, nothing rejected
    CORRECTED = "corrected"  # At least one reading rejected as a glitch
    UNVERIFIED = "unverified"  # No per-lap samples to check against
    MISSING = "missing"  # No usable reading at all


@dataclass(frozen=True)
class SensorReading:
    """Canonical value of a reconciled reading"""
    value: float
    quality: ReadingQuality
    ceiling: Optional[float] = None  # Glitch-rejection limit that was applied


class TopSpeedReconciler:
    """
    Reconcile session-level and per-lap top speed

    Both sources are checked against glitch_multiplier x the median of the
    per-lap samples; readings above that ceiling are rejected and the
    highest surviving reading wins.
    """

    def __init__(self, glitch_multiplier: float = TOP_SPEED_GLITCH_MULTIPLIER):
        self.glitch_multiplier = glitch_multiplier

    def reconcile(self, session_value: Optional[float], per_lap_values: Iterable[Optional[float]]) -> SensorReading:
        """
        Pick the canonical top speed

        Args:
            session_value: Session-level summary (0/None = not reported)
            per_lap_values: Per-lap maxima (None/0 entries ignored)

        Returns:
            SensorReading with the reconciled value and a quality flag
        """
        samples = [v for v in per_lap_values if v is not None and v > 0]
        summary = session_value if session_value is not None and session_value > 0 else None

        if not samples:
            if summary is None:
                return SensorReading(0.0, ReadingQuality.MISSING)
            return SensorReading(float(summary), ReadingQuality.UNVERIFIED)

        ceiling = float(np.median(samples)) * self.glitch_multiplier
        accepted = [v for v in samples if v <= ceiling]
        rejected = len(samples) - len(accepted)

        if summary is not None:
            if summary <= ceiling:
                accepted.append(summary)
            else:
                rejected += 1

        if rejected:
            logger.debug("Rejected %d top speed readings above %.1f km/h", rejected, ceiling)

        quality = ReadingQuality.CORRECTED if rejected else ReadingQuality.VERIFIED
        return SensorReading(float(max(accepted)), quality, ceiling)
