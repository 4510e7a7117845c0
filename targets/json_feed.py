"""
Monitor target for JSON feeds.

Fetches a JSON array over HTTP and reports records that are new or whose
content differs from the record with the same key in the previous snapshot.
"""

import html
from typing import Any, Dict, List, Optional

import httpx
import structlog

from monitor.exceptions import TargetError
from monitor.models import MonitorTarget, Snapshot
from utilities.config import MonitorSettings

logger = structlog.get_logger(__name__)


class JsonFeedTarget:
    """Watches a JSON array published at a URL."""

    def __init__(
        self,
        url: str,
        key_field: str = "id",
        keep_last: Optional[int] = None,
        timeout: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize JSON feed target.

        Args:
            url: Feed URL returning a JSON array of objects
            key_field: Field identifying a record across snapshots
            keep_last: Persist only the last N records when set
            timeout: Request timeout in seconds
            headers: Extra request headers
            transport: Optional httpx transport, used instead of the network
        """
        self.url = url
        self.key_field = key_field
        self.keep_last = keep_last
        self.timeout = timeout
        self.transport = transport
        self.headers = {"User-Agent": "ChangeMonitor/1.0", "Accept": "application/json"}
        if headers:
            self.headers.update(headers)
        self.logger = logger.bind(component="json_feed_target", url=url)

    @classmethod
    def from_settings(cls, settings: MonitorSettings) -> "JsonFeedTarget":
        return cls(
            url=settings.feed_url,
            key_field=settings.feed_key_field,
            keep_last=settings.feed_keep_last,
            timeout=settings.request_timeout
        )

    async def fetch_current(self) -> Snapshot:
        """
        Download the feed.

        Raises:
            httpx.HTTPError: On network failures or error status codes
            TargetError: If the response is not a JSON array
        """
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers=self.headers,
            transport=self.transport
        ) as client:
            response = await client.get(self.url)
            response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise TargetError(f"Feed {self.url} did not return JSON: {e}") from e

        if not isinstance(data, list):
            raise TargetError(
                f"Feed {self.url} returned {type(data).__name__}, expected a list"
            )

        self.logger.debug("Feed fetched", records=len(data))
        return data

    def compare(self, current: Snapshot, previous: Snapshot) -> List[Dict[str, Any]]:
        """Report records that are new or changed, in feed order."""
        previous_by_key = {self._key(record): record for record in previous}

        changes = []
        for record in current:
            key = self._key(record)
            old = previous_by_key.get(key)
            if old is None:
                changes.append({"kind": "added", "key": key, "record": record, "previous": None})
            elif old != record:
                changes.append({"kind": "changed", "key": key, "record": record, "previous": old})
        return changes

    def render_change(self, change: Dict[str, Any]) -> str:
        record = change["record"]
        previous = change.get("previous") or {}

        lines = [f"<b>{html.escape(change['kind'].capitalize())}: {html.escape(str(change['key']))}</b>"]
        for field, value in record.items():
            if field == self.key_field:
                continue
            line = f"{html.escape(str(field))}: {html.escape(str(value))}"
            if field in previous and previous[field] != value:
                line += f" (was {html.escape(str(previous[field]))})"
            lines.append(line)
        return "<br/>".join(lines)

    def reduce(self, current: Snapshot) -> Snapshot:
        return current[-self.keep_last:]

    def to_target(self) -> MonitorTarget:
        """Build the monitor target, with reduction only when keep_last is set."""
        return MonitorTarget(
            fetch_current=self.fetch_current,
            compare=self.compare,
            render_change=self.render_change,
            reduce=self.reduce if self.keep_last else None
        )

    def _key(self, record: Any) -> str:
        try:
            return str(record[self.key_field])
        except (KeyError, TypeError) as e:
            raise TargetError(
                f"Record has no '{self.key_field}' field: {record!r}"
            ) from e
