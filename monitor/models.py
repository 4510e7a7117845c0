"""
Models for the change monitor.

This module defines Pydantic models for:
- Notification messages and delivery receipts
- The caller-supplied monitor target
- Run cycle states and results
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field


Snapshot = List[Any]


class RunState(str, Enum):
    """States of a single run cycle."""
    IDLE = "idle"
    FETCHING = "fetching"
    COMPARING = "comparing"
    NOTIFYING = "notifying"
    PERSISTING = "persisting"
    FAILED = "failed"


class Message(BaseModel):
    """Rendered notification ready for delivery."""
    model_config = ConfigDict(frozen=True)

    subject: str = Field(..., description="Notification subject line")
    body: str = Field(..., description="HTML body")


class DeliveryReceipt(BaseModel):
    """Identifiers returned by the transport after a successful send."""
    message_id: str = Field(..., description="Transport-assigned message identifier")
    accepted: List[str] = Field(default_factory=list)
    rejected: List[str] = Field(default_factory=list)


class MonitorTarget(BaseModel):
    """
    Domain-specific behaviour supplied by the caller.

    ``fetch_current`` may return the snapshot directly or an awaitable of it.
    ``reduce`` is optional; when absent the full current snapshot is persisted.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    fetch_current: Callable[[], Union[Snapshot, Awaitable[Snapshot]]]
    compare: Callable[[Snapshot, Snapshot], Sequence[Any]]
    render_change: Callable[[Any], str]
    reduce: Optional[Callable[[Snapshot], Snapshot]] = None

    def prepare_for_storage(self, current: Snapshot) -> Snapshot:
        """Apply the reduction function if the target supplies one."""
        if self.reduce is None:
            return current
        return self.reduce(current)


class RunResult(BaseModel):
    """Outcome of one run cycle."""
    success: bool = Field(default=True)
    state: RunState = Field(default=RunState.IDLE, description="Last state reached")
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float = Field(default=0.0)

    changes_detected: int = Field(default=0)
    notification_sent: bool = Field(default=False)
    records_persisted: int = Field(default=0)

    error: Optional[str] = Field(default=None)
    context: Optional[str] = Field(default=None)

    @classmethod
    def failure(cls, error: BaseException, context: str) -> "RunResult":
        """Build a failed result for a fatal error."""
        return cls(
            success=False,
            state=RunState.FAILED,
            error=str(error),
            context=context
        )
