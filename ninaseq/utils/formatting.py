"""
Formatting utilities module for ninaseq.

This module provides the display formatting used when sequences are rendered
in the terminal.
"""

from typing import Any, Dict, Union
import json
import logging

from ..core.catalog import short_type_name
from ..core.models import ItemStatus, SequenceItem, Target


class FormattingUtils:
    """
    Utility class for formatting operations.
    """

    logger = logging.getLogger(__name__)

    @staticmethod
    def format_item_status(status: str) -> str:
        """
        Format an item status with rich markup.

        Args:
            status: One of the ItemStatus values

        Returns:
            Status string wrapped in a color tag
        """
        status = (status or ItemStatus.CREATED).upper()

        if status in (ItemStatus.FINISHED, ItemStatus.RUNNING):
            return f"[green]{status}[/green]"
        elif status == ItemStatus.FAILED:
            return f"[red]{status}[/red]"
        elif status in (ItemStatus.SKIPPED, ItemStatus.DISABLED):
            return f"[dim]{status}[/dim]"
        else:
            return f"[blue]{status}[/blue]"

    @staticmethod
    def format_ra(hours: float, minutes: float, seconds: float) -> str:
        """Format right ascension as ``05h 35m 17.3s``."""
        return f"{int(hours):02d}h {int(minutes):02d}m {float(seconds):.1f}s"

    @staticmethod
    def format_dec(degrees: float, minutes: float, seconds: float, negative: bool = False) -> str:
        """Format declination as ``-05° 23' 28.0"``."""
        sign = '-' if negative else '+'
        return f"{sign}{abs(int(degrees)):02d}° {int(minutes):02d}' {float(seconds):.1f}\""

    @staticmethod
    def format_target(target: Union[Target, Dict[str, Any]]) -> str:
        """
        Format a target as ``name (RA, Dec)``.
        """
        if isinstance(target, dict):
            target = Target.from_dict(target)
        ra = FormattingUtils.format_ra(target.ra_hours, target.ra_minutes, target.ra_seconds)
        dec = FormattingUtils.format_dec(target.dec_degrees, target.dec_minutes,
                                         target.dec_seconds, target.dec_negative)
        name = target.name or 'Unnamed target'
        return f"{name} ({ra}, {dec})"

    @staticmethod
    def format_duration(seconds: Union[int, float]) -> str:
        """
        Format a duration in seconds into human-readable format.

        Args:
            seconds: Duration in seconds

        Returns:
            Formatted duration string
        """
        if seconds < 0:
            return f"-{FormattingUtils.format_duration(-seconds)}"

        if seconds < 60:
            return f"{seconds:g}s"

        minutes = int(seconds // 60)
        remaining_seconds = seconds % 60

        if minutes < 60:
            return f"{minutes}m {remaining_seconds:g}s" if remaining_seconds else f"{minutes}m"

        hours = minutes // 60
        remaining_minutes = minutes % 60
        return f"{hours}h {remaining_minutes}m"

    @staticmethod
    def format_item_label(item: SequenceItem) -> str:
        """
        Build the one-line label used in tree views.

        Includes the item name, its short type when that differs from the
        name, a target or exposure summary and a status marker.
        """
        parts = [f"[bold]{FormattingUtils.truncate_text(item.name, 60)}[/bold]"]

        type_name = short_type_name(item.type)
        if type_name and type_name != item.name:
            parts.append(f"[dim]({type_name})[/dim]")

        if isinstance(item.data.get('Target'), dict):
            parts.append(FormattingUtils.format_target(item.data['Target']))
        elif 'ExposureTime' in item.data:
            summary = FormattingUtils.format_duration(item.data['ExposureTime'] or 0)
            if item.data.get('ImageType'):
                summary = f"{summary} {item.data['ImageType']}"
            parts.append(summary)

        if item.status != ItemStatus.CREATED:
            parts.append(FormattingUtils.format_item_status(item.status))

        return " ".join(parts)

    @staticmethod
    def format_json(data: Any, indent: int = 2) -> str:
        """
        Format data as indented JSON string.

        Args:
            data: Data to format as JSON
            indent: Number of spaces for indentation

        Returns:
            Formatted JSON string
        """
        try:
            return json.dumps(data, indent=indent, default=str, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            FormattingUtils.logger.error(f"Error formatting JSON: {str(e)}")
            return str(data)

    @staticmethod
    def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
        """
        Truncate text to a maximum length.

        Args:
            text: Text to truncate
            max_length: Maximum length of result
            suffix: Suffix to add to truncated text

        Returns:
            Truncated text string
        """
        if len(text) <= max_length:
            return text

        suffix_length = len(suffix)
        if max_length <= suffix_length:
            return suffix[:max_length]

        return text[:max_length - suffix_length] + suffix
