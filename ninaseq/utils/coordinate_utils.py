"""
Coordinate conversion and validation helpers for ninaseq.
"""

import logging
import math
from typing import Any, Dict, List


class CoordinateUtils:
    """
    Conversions between sexagesimal and decimal coordinates, and value checks
    for the target and exposure property editors.
    """

    logger = logging.getLogger(__name__)

    @staticmethod
    def ra_to_decimal(hours: float, minutes: float, seconds: float) -> float:
        """Convert an RA triple to decimal hours."""
        return hours + minutes / 60 + seconds / 3600

    @staticmethod
    def dec_to_decimal(degrees: float, minutes: float, seconds: float, negative: bool) -> float:
        """Convert a Dec quadruple to decimal degrees."""
        value = abs(degrees) + minutes / 60 + seconds / 3600
        return -value if negative else value

    @staticmethod
    def decimal_to_ra(decimal: float) -> Dict[str, float]:
        """
        Convert decimal hours to an RA triple.

        Seconds are rounded to two decimals.
        """
        hours = math.floor(decimal)
        minutes_decimal = (decimal - hours) * 60
        minutes = math.floor(minutes_decimal)
        seconds = (minutes_decimal - minutes) * 60
        return {'hours': hours, 'minutes': minutes, 'seconds': round(seconds, 2)}

    @staticmethod
    def decimal_to_dec(decimal: float) -> Dict[str, Any]:
        """Convert decimal degrees to a Dec quadruple."""
        negative = decimal < 0
        abs_decimal = abs(decimal)
        degrees = math.floor(abs_decimal)
        minutes_decimal = (abs_decimal - degrees) * 60
        minutes = math.floor(minutes_decimal)
        seconds = (minutes_decimal - minutes) * 60
        return {'degrees': degrees, 'minutes': minutes, 'seconds': round(seconds, 2), 'negative': negative}

    @staticmethod
    def validate_target(target: Dict[str, Any]) -> List[str]:
        """
        Check a target mapping for missing or out-of-range values.

        Args:
            target: Mapping with ``name``, ``ra`` and ``dec`` entries

        Returns:
            List of human readable problems, empty when the target is usable
        """
        errors = []
        ra = target.get('ra') or {}
        dec = target.get('dec') or {}

        if not str(target.get('name') or '').strip():
            errors.append('Target name is required')

        ra_hours = ra.get('hours', 0)
        if ra_hours < 0 or ra_hours >= 24:
            errors.append('RA hours must be between 0 and 23')

        ra_minutes = ra.get('minutes', 0)
        if ra_minutes < 0 or ra_minutes >= 60:
            errors.append('RA minutes must be between 0 and 59')

        dec_degrees = dec.get('degrees', 0)
        if dec_degrees < -90 or dec_degrees > 90:
            errors.append('Dec degrees must be between -90 and 90')

        return errors

    @staticmethod
    def validate_exposure(data: Dict[str, Any]) -> List[str]:
        """Check exposure time and gain in an exposure item's data map."""
        errors = []

        exposure_time = data.get('ExposureTime')
        if exposure_time is not None and exposure_time <= 0:
            errors.append('Exposure time must be positive')

        gain = data.get('Gain')
        if gain is not None and gain < -1:
            errors.append('Gain must be -1 (default) or a positive value')

        return errors
