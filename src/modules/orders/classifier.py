"""Status classifier.

Maps a free-text order status onto a lifecycle bucket and a timeline
stage.  Matching is by substring on the trimmed, lower-cased status, so
``"In Transit"``, ``"in_transit"`` and ``"in-transit (Lagos)"`` land on the
same stage.  Precedence is fixed: cancel > delivered/completed > in-progress.
A status such as ``"cancelled_delivery_attempt"`` is therefore cancelled.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from modules.orders.constants import (
    CANCELLED_KEYWORDS,
    DEFAULT_STATUS,
    PAID_KEYWORDS,
    PAST_KEYWORDS,
    STAGE_KEYWORDS,
    UNPAID_KEYWORDS,
    OrderBucket,
    TimelineStage,
)


@dataclass(frozen=True)
class StatusClassification:
    """Classified status: ``Active(stage)``, ``Past`` or ``Cancelled``."""

    bucket: OrderBucket
    stage: TimelineStage

    @property
    def is_active(self) -> bool:
        return self.bucket == OrderBucket.ACTIVE

    @property
    def is_past(self) -> bool:
        return self.bucket == OrderBucket.PAST

    @property
    def is_cancelled(self) -> bool:
        return self.bucket == OrderBucket.CANCELLED


@dataclass(frozen=True)
class TimelineStep:
    stage: TimelineStage
    label: str
    reached: bool


def normalize_status(status: Optional[str]) -> str:
    """Trim and lower-case; absent or blank statuses read as processing."""
    normalized = (status or "").strip().lower()
    return normalized or DEFAULT_STATUS


def display_status(status: Optional[str]) -> str:
    return (status or "").strip() or DEFAULT_STATUS


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def bucket_for(status: Optional[str]) -> OrderBucket:
    normalized = normalize_status(status)
    if _contains_any(normalized, CANCELLED_KEYWORDS):
        return OrderBucket.CANCELLED
    if _contains_any(normalized, PAST_KEYWORDS):
        return OrderBucket.PAST
    return OrderBucket.ACTIVE


def stage_for(status: Optional[str]) -> TimelineStage:
    normalized = normalize_status(status)
    for stage, keyword in STAGE_KEYWORDS:
        if keyword in normalized:
            return stage
    return TimelineStage.PROCESSING


def classify(status: Optional[str]) -> StatusClassification:
    return StatusClassification(bucket=bucket_for(status), stage=stage_for(status))


def is_paid(status: Optional[str]) -> bool:
    normalized = normalize_status(status)
    if _contains_any(normalized, UNPAID_KEYWORDS):
        return False
    return _contains_any(normalized, PAID_KEYWORDS)


def timeline(stage: TimelineStage) -> List[TimelineStep]:
    """The four delivery steps, each flagged as reached up to *stage*."""
    return [
        TimelineStep(stage=step, label=step.label, reached=step <= stage)
        for step in TimelineStage
    ]
