"""
Posture observation timeline and derived statistics.

Provides:
- PostureCategory taxonomy with display labels and colors
- Immutable PostureObservation records
- A FIFO-bounded ObservationTimeline
- compute_statistics(), recomputed from the full timeline on every read
"""

import math
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence


class PostureCategory(Enum):
    """Discrete posture classes."""
    UPRIGHT = "upright"
    LEANING_LEFT = "leaning_left"
    LEANING_RIGHT = "leaning_right"
    SLOUCHING = "slouching"  # reserved; the shoulder-tilt rule never emits it
    UNKNOWN = "unknown"

    @property
    def is_tilt(self) -> bool:
        return self in (PostureCategory.LEANING_LEFT, PostureCategory.LEANING_RIGHT)

    @property
    def label(self) -> str:
        return POSTURE_LABELS[self]

    @property
    def color(self) -> str:
        return POSTURE_COLORS[self]


POSTURE_LABELS = {
    PostureCategory.UPRIGHT: "Upright",
    PostureCategory.LEANING_LEFT: "Leaning left",
    PostureCategory.LEANING_RIGHT: "Leaning right",
    PostureCategory.SLOUCHING: "Slouching",
    PostureCategory.UNKNOWN: "Not detected",
}

POSTURE_COLORS = {
    PostureCategory.UPRIGHT: "#10B981",
    PostureCategory.LEANING_LEFT: "#F59E0B",
    PostureCategory.LEANING_RIGHT: "#F59E0B",
    PostureCategory.SLOUCHING: "#EF4444",
    PostureCategory.UNKNOWN: "#6B7280",
}


@dataclass(frozen=True)
class PostureObservation:
    """One classified detection cycle."""
    timestamp: int  # milliseconds
    category: PostureCategory
    tilt_angle: float  # degrees, positive = rightward lean
    activity_index: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "timestamp": self.timestamp,
            "posture": self.category.value,
            "tilt_angle": self.tilt_angle,
            "activity_index": self.activity_index,
        }


class ObservationTimeline:
    """
    Append-only, chronological log of posture observations.

    Bounded to ``capacity`` entries; once full, each append evicts the oldest
    entry. Entries are never reordered or mutated. Appends are a single
    deque operation, so a reader on the same event loop never sees a partial
    update.
    """

    DEFAULT_CAPACITY = 100

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError(f"Timeline capacity must be positive, got {capacity}")
        self._entries: deque[PostureObservation] = deque(maxlen=capacity)

    def append(self, observation: PostureObservation):
        if observation.category is PostureCategory.UNKNOWN:
            raise ValueError("Unknown postures are never recorded")
        self._entries.append(observation)

    def clear(self):
        self._entries.clear()

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    @property
    def entries(self) -> tuple[PostureObservation, ...]:
        """Snapshot of the timeline, oldest first."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(tuple(self._entries))

    def to_list(self) -> list[dict]:
        return [entry.to_dict() for entry in self._entries]


@dataclass(frozen=True)
class PostureStatistics:
    """Distribution and tilt-episode summary of a timeline."""
    upright_percentage: int = 0
    left_tilt_percentage: int = 0
    right_tilt_percentage: int = 0
    slouching_percentage: int = 0
    total_tilt_episodes: int = 0
    avg_tilt_duration_ms: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "upright_percentage": self.upright_percentage,
            "left_tilt_percentage": self.left_tilt_percentage,
            "right_tilt_percentage": self.right_tilt_percentage,
            "slouching_percentage": self.slouching_percentage,
            "total_tilt_episodes": self.total_tilt_episodes,
            "avg_tilt_duration_ms": self.avg_tilt_duration_ms,
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def tilt_episode_durations(entries: Iterable[PostureObservation]) -> list[int]:
    """
    Durations (ms) of every tilt episode in the timeline.

    An episode is a maximal run of leaning_left / leaning_right entries; the
    lean direction may switch inside a run. An upright entry closes the run,
    slouching entries neither close nor extend it, and a run still open at
    the end of the timeline counts.
    """
    durations = []
    run_start: Optional[int] = None
    run_end: Optional[int] = None

    for entry in entries:
        if entry.category.is_tilt:
            if run_start is None:
                run_start = entry.timestamp
            run_end = entry.timestamp
        elif entry.category is PostureCategory.UPRIGHT and run_start is not None:
            durations.append(run_end - run_start)
            run_start = run_end = None

    if run_start is not None:
        durations.append(run_end - run_start)

    return durations


def compute_statistics(entries: Sequence[PostureObservation]) -> PostureStatistics:
    """
    Recompute statistics from the full timeline.

    Percentages are taken over recorded entries only; unknown cycles are
    never recorded, so the four percentages describe the same denominator.
    """
    total = len(entries)
    if total == 0:
        return PostureStatistics()

    counts = {category: 0 for category in PostureCategory}
    for entry in entries:
        counts[entry.category] += 1

    def percentage(category: PostureCategory) -> int:
        return _round_half_up(100 * counts[category] / total)

    durations = tilt_episode_durations(entries)
    avg_duration = _round_half_up(sum(durations) / len(durations)) if durations else 0

    return PostureStatistics(
        upright_percentage=percentage(PostureCategory.UPRIGHT),
        left_tilt_percentage=percentage(PostureCategory.LEANING_LEFT),
        right_tilt_percentage=percentage(PostureCategory.LEANING_RIGHT),
        slouching_percentage=percentage(PostureCategory.SLOUCHING),
        total_tilt_episodes=len(durations),
        avg_tilt_duration_ms=avg_duration,
    )
