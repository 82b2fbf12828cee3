"""
Virtual render clock for fire-and-forget animations.

Scene mutations are applied synchronously; the clock only records how a
shape (or axis) visually travels from its previous attributes to the new
ones. Callers never await it. Scheduling a transition for a key that is
still animating supersedes the in-flight one, starting from its current
interpolated value.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


def ease_cubic_in_out(t: float) -> float:
    """d3's default transition easing."""
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class Transition:
    """A timed interpolation between two attribute sets."""

    key: str
    start: dict[str, Any]
    end: dict[str, Any]
    started_at: float
    duration: float
    delay: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def ends_at(self) -> float:
        return self.started_at + self.delay + self.duration

    def progress(self, now: float) -> float:
        """Eased progress in [0, 1]."""
        elapsed = now - self.started_at - self.delay
        if elapsed <= 0:
            return 0.0
        if self.duration <= 0 or elapsed >= self.duration:
            return 1.0
        return ease_cubic_in_out(elapsed / self.duration)

    def sample(self, now: float) -> dict[str, Any]:
        """Attribute values at `now`; non-numeric attributes jump to the end value."""
        t = self.progress(now)
        values: dict[str, Any] = {}
        for name, target in self.end.items():
            origin = self.start.get(name, target)
            if _is_number(origin) and _is_number(target):
                values[name] = origin + (target - origin) * t
            else:
                values[name] = target
        return values


class RenderClock:
    """Holds in-flight transitions keyed by shape or axis identity."""

    def __init__(self) -> None:
        self.now: float = 0.0
        self._active: dict[str, Transition] = {}
        self.superseded_count = 0

    @property
    def pending(self) -> int:
        return len(self._active)

    def is_animating(self, key: str) -> bool:
        return key in self._active

    def schedule(
        self,
        key: str,
        start: dict[str, Any],
        end: dict[str, Any],
        duration: float,
        *,
        delay: float = 0.0,
    ) -> Transition | None:
        """
        Schedule a transition, superseding any in-flight one for the same key.

        Args:
            key: Identity of the animated object (e.g. "shape:12", "axis:y")
            start: Attribute values the animation starts from
            end: Attribute values the animation ends at
            duration: Duration in milliseconds; 0 applies instantly
            delay: Delay before the animation starts, in milliseconds

        Returns:
            The scheduled Transition, or None for an instant change
        """
        current = self._active.pop(key, None)
        if current is not None:
            self.superseded_count += 1
            start = {**start, **current.sample(self.now)}
            logger.debug(f"Superseded in-flight transition for {key}")

        if duration <= 0 and delay <= 0:
            return None

        transition = Transition(
            key=key,
            start=dict(start),
            end=dict(end),
            started_at=self.now,
            duration=float(duration),
            delay=float(delay),
        )
        self._active[key] = transition
        return transition

    def sample(self, key: str, fallback: dict[str, Any]) -> dict[str, Any]:
        """Current visual attributes for a key, or `fallback` when idle."""
        transition = self._active.get(key)
        if transition is None:
            return fallback
        return {**fallback, **transition.sample(self.now)}

    def tick(self, ms: float) -> list[str]:
        """Advance the clock and retire finished transitions.

        Returns:
            Keys whose transitions completed during this tick
        """
        self.now += ms
        finished = [key for key, t in self._active.items() if t.ends_at <= self.now]
        for key in finished:
            del self._active[key]
        return finished

    def flush(self) -> list[str]:
        """Jump past every in-flight transition."""
        if not self._active:
            return []
        horizon = max(t.ends_at for t in self._active.values())
        return self.tick(max(0.0, horizon - self.now))

    def cancel(self, key: str) -> None:
        self._active.pop(key, None)

    def clear(self) -> None:
        self._active.clear()
