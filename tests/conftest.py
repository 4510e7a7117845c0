"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from monitor.error_handler import ErrorHandler
from monitor.formatter import ChangeFormatter
from monitor.models import DeliveryReceipt, MonitorTarget
from monitor.notifier import Notifier
from monitor.orchestrator import ChangeMonitor
from monitor.snapshot_store import SnapshotStore
from utilities.logger import RunLogger


FIXED_NOW = datetime(2024, 3, 4, 9, 5)  # a Monday


def compare_by_id(current, previous):
    """Report records whose id is new or whose content changed."""
    previous_by_id = {record["id"]: record for record in previous}
    return [
        record for record in current
        if previous_by_id.get(record["id"]) != record
    ]


def render_record(record):
    return f"Record {record['id']}: {record['v']}"


@pytest.fixture
def data_path(tmp_path):
    """Location of the snapshot file for a test."""
    return tmp_path / "data" / "snapshot.json"


@pytest.fixture
def snapshot_store(data_path):
    return SnapshotStore(data_path)


@pytest.fixture
def mock_transport():
    """Create a mock mail transport that accepts every message."""
    transport = AsyncMock()
    transport.send_mail.return_value = DeliveryReceipt(
        message_id="<1@monitor.test>",
        accepted=["ops@example.com"]
    )
    return transport


@pytest.fixture
def notifier(mock_transport):
    return Notifier(mock_transport, "monitor@example.com", "ops@example.com")


@pytest.fixture
def formatter():
    return ChangeFormatter(mail_title="Records", render_change=render_record, locale="en_US")


@pytest.fixture
def error_handler(notifier, formatter):
    return ErrorHandler(notifier, formatter)


@pytest.fixture
def current_data():
    return [{"id": 1, "v": "a"}]


@pytest.fixture
def monitor_target(current_data):
    """Create a target returning current_data from an async fetch."""
    return MonitorTarget(
        fetch_current=AsyncMock(return_value=current_data),
        compare=compare_by_id,
        render_change=render_record
    )


@pytest.fixture
def build_monitor(snapshot_store, formatter, notifier, error_handler):
    """Factory for change monitors sharing the test components."""
    def _build(target):
        return ChangeMonitor(
            target=target,
            store=snapshot_store,
            formatter=formatter,
            notifier=notifier,
            error_handler=error_handler,
            clock=lambda: FIXED_NOW,
            run_logger=RunLogger("test")
        )
    return _build


@pytest.fixture
def make_target():
    """Factory for targets comparing by id and rendering records."""
    def _make(fetch_current, compare=compare_by_id, reduce=None):
        return MonitorTarget(
            fetch_current=fetch_current,
            compare=compare,
            render_change=render_record,
            reduce=reduce
        )
    return _make
