"""
Fail-open data lookups used by the match scorer and suggestion ranker.

Availability and rating lookups never raise. A failed lookup is logged,
counted, and replaced by a neutral default (no availability, no rating
boost), and the result is flagged as degraded so callers can tell
"no data" apart from "data unavailable".
"""

from dataclasses import dataclass
from typing import Dict, Generic, Iterable, Optional, TypeVar
import logging
import threading

from django.conf import settings
from django.db import DatabaseError
from django.db.models import Avg, Count
from django.utils import timezone

from config.alerting import send_alert
from core.exceptions import DependencyDegraded

from .models import AvailabilitySlot, Review

logger = logging.getLogger('matching.lookups')

T = TypeVar('T')


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """A lookup value, or the neutral default when the lookup degraded."""
    value: T
    degraded: bool = False


@dataclass(frozen=True)
class RatingSummary:
    """Average rating (0-5) and number of reviews for one mentor."""
    avg: float
    count: int


class DegradationTracker:
    """
    Counts consecutive failures per dependency.

    One warning alert is sent when a dependency reaches the threshold; a
    successful lookup resets its counter and re-arms the alert.
    """

    def __init__(self, threshold: Optional[int] = None):
        self._threshold = threshold
        self._failures: Dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def threshold(self) -> int:
        if self._threshold is not None:
            return self._threshold
        return getattr(settings, 'MATCHING_CONFIG', {}).get('degraded_alert_threshold', 5)

    def failures(self, dependency: str) -> int:
        return self._failures.get(dependency, 0)

    def record_success(self, dependency: str) -> None:
        with self._lock:
            if self._failures.pop(dependency, 0) >= self.threshold:
                logger.info("%s lookups recovered", dependency)

    def record_failure(self, error: DependencyDegraded) -> None:
        with self._lock:
            count = self._failures.get(error.dependency, 0) + 1
            self._failures[error.dependency] = count

        logger.warning("%s (consecutive failures: %d)", error, count)
        if count == self.threshold:
            send_alert(
                "warning",
                f"{error.dependency} lookups degraded",
                f"{count} consecutive failures; last error: {error.cause}",
            )

    def reset(self) -> None:
        with self._lock:
            self._failures.clear()


degradation_tracker = DegradationTracker()


class AvailabilityOracle:
    """Answers whether a mentor has any bookable future slot."""

    DEPENDENCY = 'availability'

    def __init__(self, tracker: DegradationTracker = None):
        self.tracker = tracker or degradation_tracker

    async def has_future_availability(self, mentor_id) -> Lookup[bool]:
        try:
            found = await AvailabilitySlot.objects.filter(
                mentor_id=mentor_id,
                status=AvailabilitySlot.Status.AVAILABLE,
                start_time__gte=timezone.now(),
            ).aexists()
        except DatabaseError as exc:
            self.tracker.record_failure(DependencyDegraded(self.DEPENDENCY, exc))
            return Lookup(False, degraded=True)

        self.tracker.record_success(self.DEPENDENCY)
        return Lookup(found)


class RatingAggregator:
    """
    Average rating and review count per mentor.

    Mentors without reviews are left out of the result (None for a single
    mentor) rather than reported as rated zero.
    """

    DEPENDENCY = 'ratings'

    def __init__(self, tracker: DegradationTracker = None):
        self.tracker = tracker or degradation_tracker

    async def for_mentors(self, mentor_ids: Iterable) -> Dict[object, RatingSummary]:
        mentor_ids = list(mentor_ids)
        if not mentor_ids:
            return {}

        summaries = {}
        try:
            rows = (
                Review.objects
                .filter(mentor_id__in=mentor_ids)
                .values('mentor_id')
                .annotate(avg=Avg('rating'), count=Count('id'))
                .order_by()
            )
            async for row in rows:
                summaries[row['mentor_id']] = RatingSummary(
                    avg=float(row['avg']),
                    count=int(row['count']),
                )
        except DatabaseError as exc:
            self.tracker.record_failure(DependencyDegraded(self.DEPENDENCY, exc))
            return {}

        self.tracker.record_success(self.DEPENDENCY)
        return summaries

    async def for_mentor(self, mentor_id) -> Optional[RatingSummary]:
        return (await self.for_mentors([mentor_id])).get(mentor_id)
