"""
Module: graph

Purpose: The mutable scene: tagged shape groups kept in z-order.

Key Functions:
- Scene.set_shapes: Diff/join a tag's live shapes against a target data array
- Scene.clear_tags: Remove every shape under the given tags
- Scene.raise_shapes / Scene.lower_shapes: Explicit z-order control

Architecture Notes:
- Shapes are identified by (tag, key); a datum present in two consecutive
  joins keeps the same shape (and shape_id), so its change is animated
  instead of removed and recreated
- The last join's attributes are kept as the shape's defaults so interaction
  layers can restore them
- Animations are handed to the RenderClock; nothing here waits on them
"""

import logging
from collections.abc import Callable, Hashable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from payscope.data.schemas import Record
from payscope.exceptions import DataValidationError, SceneClosedError
from payscope.features.aggregators import GroupStat
from payscope.scene.clock import RenderClock

logger = logging.getLogger(__name__)

Encoder = Callable[[Any], dict[str, Any]]
KeyFunc = Callable[[Any], Hashable]

SHAPE_KINDS = {"circle", "line", "rect", "text"}


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class Shape:
    """A rendered primitive bound to exactly one datum."""

    shape_id: int
    tag: str
    kind: str
    key: Hashable
    datum: Any
    attrs: dict[str, Any] = field(default_factory=dict)
    defaults: dict[str, Any] = field(default_factory=dict)

    # Bumped whenever the live attributes are rewritten
    version: int = 0

    @property
    def clock_key(self) -> str:
        return f"shape:{self.shape_id}"


@dataclass(frozen=True)
class Annotation:
    """A literal overlay datum (label, arrow, caption, cap)."""

    key: str
    kind: str
    attrs: dict[str, Any] = field(default_factory=dict, hash=False, compare=True)


@dataclass
class JoinResult:
    """Shapes touched by one diff/join."""

    entered: list[Shape] = field(default_factory=list)
    updated: list[Shape] = field(default_factory=list)
    exited: list[Shape] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.entered) + len(self.updated)


def default_key(datum: Any) -> Hashable:
    """Identity of a datum across joins."""
    if isinstance(datum, Record):
        return ("record", datum.record_id)
    if isinstance(datum, GroupStat):
        return ("group", datum.entity)
    if isinstance(datum, Annotation):
        return ("annotation", datum.key)
    return datum


# =============================================================================
# SCENE
# =============================================================================


class Scene:
    """
    Owned scene graph for one visualization session.

    Shapes live in a single list whose order is the z-order (first = bottom).
    The scene is created at session start and torn down with close().
    """

    def __init__(self, clock: RenderClock | None = None):
        self.clock = clock or RenderClock()
        self._shapes: list[Shape] = []
        self._next_id = 1
        self.closed = False

    def __len__(self) -> int:
        return len(self._shapes)

    def __iter__(self):
        return iter(list(self._shapes))

    def __contains__(self, shape: object) -> bool:
        if not isinstance(shape, Shape):
            return False
        return any(s.shape_id == shape.shape_id for s in self._shapes)

    def _check_open(self) -> None:
        if self.closed:
            raise SceneClosedError("Scene has been closed")

    def _new_shape(self, tag: str, kind: str, key: Hashable, datum: Any, attrs: dict[str, Any]) -> Shape:
        shape = Shape(
            shape_id=self._next_id,
            tag=tag,
            kind=kind,
            key=key,
            datum=datum,
            attrs=dict(attrs),
            defaults=dict(attrs),
        )
        self._next_id += 1
        self._shapes.append(shape)
        return shape

    def _remove(self, doomed: list[Shape]) -> None:
        if not doomed:
            return
        doomed_ids = {s.shape_id for s in doomed}
        self._shapes = [s for s in self._shapes if s.shape_id not in doomed_ids]
        for shape in doomed:
            self.clock.cancel(shape.clock_key)

    # -------------------------------------------------------------------------
    # Diff / join
    # -------------------------------------------------------------------------

    def set_shapes(
        self,
        tag: str,
        data: Sequence[Any],
        encoder: Encoder,
        *,
        kind: str | Callable[[Any], str],
        key: KeyFunc = default_key,
        duration: float = 0,
        enter_from: dict[str, Any] | None = None,
    ) -> JoinResult:
        """
        Make a tag's live shapes match `data` exactly.

        Args:
            tag: Shape group to reconcile
            data: Target data array; keys must be unique
            encoder: Maps a datum to its attributes
            kind: Shape kind, or a function of the datum
            key: Datum identity used to match existing shapes
            duration: Animation duration for updates and enters (ms)
            enter_from: Attribute overrides entering shapes animate from

        Returns:
            JoinResult with entered, updated and exited shapes

        Raises:
            DataValidationError: If two data share a key or a kind is unknown
        """
        self._check_open()

        existing = {s.key: s for s in self._shapes if s.tag == tag}
        targets: dict[Hashable, Any] = {}
        for datum in data:
            k = key(datum)
            if k in targets:
                raise DataValidationError(
                    f"Duplicate key in join data for tag {tag!r}",
                    field="key",
                    value=k,
                )
            targets[k] = datum

        result = JoinResult()
        result.exited = [s for k, s in existing.items() if k not in targets]
        self._remove(result.exited)

        for k, datum in targets.items():
            shape_kind = kind(datum) if callable(kind) else kind
            if shape_kind not in SHAPE_KINDS:
                raise DataValidationError(
                    f"Unknown shape kind {shape_kind!r}",
                    field="kind",
                    value=shape_kind,
                )
            attrs = encoder(datum)
            shape = existing.get(k)

            if shape is not None and shape.kind != shape_kind:
                self._remove([shape])
                result.exited.append(shape)
                shape = None

            if shape is None:
                shape = self._new_shape(tag, shape_kind, k, datum, attrs)
                result.entered.append(shape)
                if enter_from:
                    self.clock.schedule(shape.clock_key, {**attrs, **enter_from}, attrs, duration)
                continue

            previous = self.clock.sample(shape.clock_key, shape.attrs)
            shape.datum = datum
            shape.attrs = dict(attrs)
            shape.defaults = dict(attrs)
            shape.version += 1
            if previous != attrs:
                self.clock.schedule(shape.clock_key, previous, attrs, duration)
            result.updated.append(shape)

        logger.debug(
            f"Join {tag!r}: +{len(result.entered)} ~{len(result.updated)} -{len(result.exited)}"
        )
        return result

    def clear_tags(self, tags: Iterable[str]) -> int:
        """Remove every shape under the given tags, regardless of data identity.

        Returns:
            Number of shapes removed
        """
        self._check_open()
        doomed_tags = set(tags)
        doomed = [s for s in self._shapes if s.tag in doomed_tags]
        self._remove(doomed)
        return len(doomed)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def select(
        self,
        tag: str | Iterable[str] | None = None,
        predicate: Callable[[Shape], bool] | None = None,
    ) -> list[Shape]:
        """Shapes in z-order, optionally filtered by tag(s) and a predicate."""
        if tag is None:
            tags = None
        elif isinstance(tag, str):
            tags = {tag}
        else:
            tags = set(tag)
        return [
            s for s in self._shapes
            if (tags is None or s.tag in tags) and (predicate is None or predicate(s))
        ]

    def find(self, tag: str, key: Hashable) -> Shape | None:
        for shape in self._shapes:
            if shape.tag == tag and shape.key == key:
                return shape
        return None

    def count(self, tag: str | None = None) -> int:
        return len(self.select(tag))

    def tags(self) -> set[str]:
        return {s.tag for s in self._shapes}

    def snapshot(self) -> list[tuple[str, str, Hashable, tuple[tuple[str, Any], ...]]]:
        """Comparable view of the scene: (tag, kind, key, attrs) in z-order."""
        return [
            (s.tag, s.kind, s.key, tuple(sorted(s.attrs.items())))
            for s in self._shapes
        ]

    # -------------------------------------------------------------------------
    # Appearance and z-order
    # -------------------------------------------------------------------------

    def set_attrs(self, shapes: Iterable[Shape], **attrs: Any) -> None:
        """Change live attributes without touching the shapes' defaults."""
        self._check_open()
        for shape in shapes:
            shape.attrs.update(attrs)
            shape.version += 1

    def restore_defaults(self, shapes: Iterable[Shape] | None = None) -> None:
        """Reset shapes (all when None) to the appearance of their last join."""
        self._check_open()
        for shape in self._shapes if shapes is None else shapes:
            shape.attrs = dict(shape.defaults)
            shape.version += 1

    def raise_shapes(self, shapes: Iterable[Shape]) -> None:
        """Move shapes above all siblings, keeping their relative order."""
        self._check_open()
        ids = {s.shape_id for s in shapes}
        self._shapes = (
            [s for s in self._shapes if s.shape_id not in ids]
            + [s for s in self._shapes if s.shape_id in ids]
        )

    def lower_shapes(self, shapes: Iterable[Shape]) -> None:
        """Move shapes below all siblings, keeping their relative order."""
        self._check_open()
        ids = {s.shape_id for s in shapes}
        self._shapes = (
            [s for s in self._shapes if s.shape_id in ids]
            + [s for s in self._shapes if s.shape_id not in ids]
        )

    def raise_tag(self, tag: str) -> None:
        self.raise_shapes(self.select(tag))

    def lower_tag(self, tag: str) -> None:
        self.lower_shapes(self.select(tag))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Tear down the scene; further mutation raises SceneClosedError."""
        if self.closed:
            return
        removed = len(self._shapes)
        self._shapes.clear()
        self.clock.clear()
        self.closed = True
        logger.debug(f"Scene closed ({removed} shapes released)")

    def __enter__(self) -> "Scene":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
