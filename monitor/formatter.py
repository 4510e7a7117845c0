"""
Rendering of detected changes into notification messages.
"""

import html
from datetime import datetime
from typing import Any, Callable, Sequence

from babel.dates import format_date, format_skeleton, format_time

from monitor.models import Message

PARAGRAPH_SEPARATOR = "<br/><br/>"

DAY_MONTH_SKELETON = "MMdd"


class ChangeFormatter:
    """Builds change and error notifications for one monitor."""

    def __init__(
        self,
        mail_title: str,
        render_change: Callable[[Any], str],
        locale: str = "en_US"
    ):
        """
        Initialize change formatter.

        Args:
            mail_title: Title used in every subject line
            render_change: Renders one change as HTML
            locale: Babel locale for the long date line
        """
        self.mail_title = mail_title
        self.render_change = render_change
        self.locale = locale

    def format(self, changes: Sequence[Any], now: datetime) -> Message:
        """
        Build the notification for a non-empty list of changes.

        Args:
            changes: Changes reported by the compare function
            now: Wall-clock time of the run

        Returns:
            Message with a count/time subject and one paragraph per change
        """
        if not changes:
            raise ValueError("Cannot format a notification without changes")

        rendered = [self.render_change(change) for change in changes]
        body = (
            PARAGRAPH_SEPARATOR.join(rendered)
            + f"{PARAGRAPH_SEPARATOR}Data as of: {self.format_long_date(now)}"
        )
        subject = f"{len(changes)} {self.mail_title} changed at {now.strftime('%H:%M')}"
        return Message(subject=subject, body=body)

    def format_error(self, message: str) -> Message:
        """Build the error notification; line breaks become HTML breaks."""
        body = "<br/>".join(html.escape(line) for line in message.splitlines())
        return Message(subject=f"{self.mail_title}: Error", body=body)

    def format_long_date(self, timestamp: datetime) -> str:
        """Render weekday, two-digit day and month, and 24h time for the locale."""
        weekday = format_date(timestamp, "EEEE", locale=self.locale)
        day_month = format_skeleton(DAY_MONTH_SKELETON, timestamp, locale=self.locale)
        time = format_time(timestamp, "HH:mm", locale=self.locale)
        return f"{weekday}, {day_month}, {time}"
