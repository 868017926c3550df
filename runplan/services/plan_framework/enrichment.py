"""
Enrichment Contract

The coaching-text collaborator (an LLM service in production) fills the
placeholder fields of quality workouts: title, description, target pace
and main-set structure. This module owns the contract, not the client:

- build_enrichment_request(): per-week groups of quality-day descriptors
  plus a compact athlete context string
- apply_enrichment(): copy results onto a skeleton without touching its
  structure (dates, distances, types, phases, intensity)
- ProgressChannel: per-plan observer for progress events, owned by the
  caller and closed when the plan is done
- enrich_skeleton(): drive a client week by week

Usage:
    with ProgressChannel() as channel:
        channel.subscribe(lambda event: print(event.event.value, event.week_number))
        enriched = enrich_skeleton(skeleton, profile, client, channel)
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from .constants import Phase, Weekday, WorkoutType, Intensity, QUALITY_TYPES
from .models import AthleteProfile, PlanSkeleton

logger = logging.getLogger(__name__)


# ============ Request / result types ============

@dataclass(frozen=True)
class QualityDescriptor:
    date: date
    weekday: Weekday
    workout_type: WorkoutType
    distance_km: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "weekday": self.weekday.value,
            "workout_type": self.workout_type.value,
            "distance_km": self.distance_km,
        }


@dataclass(frozen=True)
class WeekGroup:
    week_number: int
    phase: Phase
    quality_level: int
    workouts: Tuple[QualityDescriptor, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_number": self.week_number,
            "phase": self.phase.value,
            "quality_level": self.quality_level,
            "workouts": [w.to_dict() for w in self.workouts],
        }


@dataclass(frozen=True)
class EnrichmentRequest:
    athlete_context: str
    weeks: Tuple[WeekGroup, ...]

    @property
    def workout_count(self) -> int:
        return sum(len(w.workouts) for w in self.weeks)


@dataclass(frozen=True)
class EnrichedWorkout:
    """Text returned for one workout. Intensity is informational only."""
    title: Optional[str] = None
    description: Optional[str] = None
    target_pace: Optional[str] = None
    structure: Optional[str] = None  # main set
    intensity: Optional[Intensity] = None


class EnrichmentError(Exception):
    """Raised by a client when one week could not be enriched."""
    pass


class EnrichmentClient(Protocol):
    def enrich_week(self, group: WeekGroup, athlete_context: str) -> Dict[date, EnrichedWorkout]:
        ...


# ============ Progress channel ============

class ProgressEvent(str, Enum):
    STARTED = "started"
    WEEK_COMPLETED = "week_completed"
    FAILED_WEEK = "failed_week"
    COMPLETED = "completed"


@dataclass(frozen=True)
class EnrichmentProgress:
    event: ProgressEvent
    completed_weeks: int
    total_weeks: int
    week_number: Optional[int] = None
    message: Optional[str] = None


ProgressCallback = Callable[[EnrichmentProgress], None]


class Subscription:
    """Handle returned by ProgressChannel.subscribe()."""

    def __init__(self, channel: "ProgressChannel", callback: ProgressCallback):
        self._channel = channel
        self.callback = callback
        self.active = True

    def cancel(self):
        if self.active:
            self.active = False
            self._channel._remove(self)


class ProgressChannel:
    """
    Per-plan progress observer.

    Subscribers receive events in publish order. After close() no more
    events are delivered and all subscriptions are cancelled.
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self.closed = False

    def subscribe(self, callback: ProgressCallback) -> Subscription:
        if self.closed:
            raise RuntimeError("Progress channel is closed")
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def publish(self, event: EnrichmentProgress):
        if self.closed:
            logger.debug(f"Dropping {event.event.value} on closed channel")
            return
        for subscription in list(self._subscriptions):
            subscription.callback(event)

    def close(self):
        for subscription in list(self._subscriptions):
            subscription.cancel()
        self.closed = True

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _remove(self, subscription: Subscription):
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def __enter__(self) -> "ProgressChannel":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


# ============ Contract operations ============

def _athlete_context(profile: Optional[AthleteProfile]) -> str:
    if profile is None:
        return "no athlete history"
    parts = [
        f"baseline {profile.effective_baseline_km:.0f} km/wk",
        f"longest run {profile.long_run_anchor_km:.1f} km",
        f"easy pace {profile.easy_pace:.2f} min/km",
        f"experience {profile.consistency.value}",
    ]
    if profile.estimated_vdot:
        parts.append(f"VDOT {profile.estimated_vdot:.1f}")
    if profile.max_hr:
        parts.append(f"max HR {profile.max_hr}")
    return "; ".join(parts)


def build_enrichment_request(
    skeleton: PlanSkeleton,
    profile: Optional[AthleteProfile] = None,
) -> EnrichmentRequest:
    """Group the quality days of every week for the text collaborator."""
    groups = []
    for week in skeleton.weeks:
        workouts = tuple(
            QualityDescriptor(
                date=day.date,
                weekday=day.weekday,
                workout_type=day.workout_type,
                distance_km=day.distance_km,
            )
            for day in week.days if day.workout_type in QUALITY_TYPES
        )
        if workouts:
            groups.append(WeekGroup(week.week_number, week.phase, week.quality_level, workouts))
    return EnrichmentRequest(athlete_context=_athlete_context(profile), weeks=tuple(groups))


def apply_enrichment(
    skeleton: PlanSkeleton,
    results: Dict[date, EnrichedWorkout],
) -> PlanSkeleton:
    """
    Copy enrichment text onto matching days.

    Only title, description, target_pace and structure change. Missing
    fields in a result keep the existing value.
    """
    known = {day.date for week in skeleton.weeks for day in week.days}
    for unknown in sorted(set(results) - known):
        logger.debug(f"Ignoring enrichment for {unknown}: not a plan day")

    weeks = []
    for week in skeleton.weeks:
        days = []
        for day in week.days:
            result = results.get(day.date)
            if result is None:
                days.append(day)
                continue
            if result.intensity is not None and result.intensity != day.intensity:
                logger.debug(
                    f"{day.date}: enrichment suggests {result.intensity.value} intensity, "
                    f"keeping {day.intensity.value}"
                )
            days.append(day.copy_with(
                title=result.title if result.title is not None else day.title,
                description=result.description if result.description is not None else day.description,
                target_pace=result.target_pace if result.target_pace is not None else day.target_pace,
                structure=result.structure if result.structure is not None else day.structure,
            ))
        weeks.append(week.copy_with(days=tuple(days)))
    return skeleton.copy_with(weeks=tuple(weeks))


def enrich_skeleton(
    skeleton: PlanSkeleton,
    profile: Optional[AthleteProfile],
    client: EnrichmentClient,
    channel: Optional[ProgressChannel] = None,
) -> PlanSkeleton:
    """
    Enrich a skeleton one week at a time.

    A week whose client call raises EnrichmentError keeps empty
    placeholders; the remaining weeks are still enriched.
    """
    request = build_enrichment_request(skeleton, profile)
    total = len(request.weeks)
    completed = 0

    def publish(event: ProgressEvent, week_number: Optional[int] = None, message: Optional[str] = None):
        if channel is not None:
            channel.publish(EnrichmentProgress(event, completed, total, week_number, message))

    publish(ProgressEvent.STARTED)
    results: Dict[date, EnrichedWorkout] = {}
    failed = 0

    for group in request.weeks:
        try:
            week_results = client.enrich_week(group, request.athlete_context)
        except EnrichmentError as e:
            failed += 1
            logger.warning(f"Enrichment failed for week {group.week_number}: {e}")
            publish(ProgressEvent.FAILED_WEEK, group.week_number, str(e))
            continue
        results.update(week_results or {})
        completed += 1
        publish(ProgressEvent.WEEK_COMPLETED, group.week_number)

    enriched = apply_enrichment(skeleton, results)
    publish(ProgressEvent.COMPLETED)
    logger.info(f"Enriched {completed}/{total} weeks ({failed} failed)")
    return enriched
