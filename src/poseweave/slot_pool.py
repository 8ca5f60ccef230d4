"""
PoseWeave Slot Pool - Fixed-capacity identity slots

The pool owns every Particle. It is allocated once with max_poses slots, each
holding one Particle per enabled landmark; slots are never added or removed,
only bound to and released from detector identities.

Particle i of every slot always corresponds to layout name i. The layout is
an explicit LandmarkLayout so the correspondence can be checked each frame
instead of relying on list positions lining up.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from .particles import Particle
from .pose_types import Landmark, Pose


@dataclass(frozen=True)
class LandmarkLayout:
    """Ordered landmark name -> particle index mapping."""
    names: Tuple[str, ...]
    _index: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "names", tuple(self.names))
        object.__setattr__(self, "_index", {name: i for i, name in enumerate(self.names)})
        if len(self._index) != len(self.names):
            raise ValueError(f"Duplicate landmark names in layout: {self.names}")

    def __len__(self) -> int:
        return len(self.names)

    def index_of(self, name: str) -> int:
        return self._index[name]

    def matches(self, names: Sequence[str]) -> bool:
        """True if names has the same composition and order."""
        return tuple(names) == self.names

    def extract(self, pose: Pose) -> List[Optional[Landmark]]:
        """Pose landmarks in layout order; None where the pose lacks a name."""
        found = {}
        for lm in pose.landmarks:
            if lm.name in self._index:
                found[lm.name] = lm
        return [found.get(name) for name in self.names]


class TrackingSlot:
    """
    One entity slot.

    Attributes:
        index: Position in the pool (first-fit order)
        identity: Bound detector identity, or None when free
        matched: Whether a detection was routed here this frame
        particles: One Particle per layout landmark
    """

    def __init__(self, index: int, size: int):
        self.index = index
        self.identity: Optional[Hashable] = None
        self.matched = False
        self.particles: List[Particle] = [Particle() for _ in range(size)]

    @property
    def is_bound(self) -> bool:
        return self.identity is not None

    @property
    def anchor_x(self) -> float:
        """x of the reference particle used for left-to-right ordering."""
        return self.particles[0].x

    def bind(self, identity: Hashable):
        self.identity = identity

    def release(self):
        self.identity = None

    def reset(self):
        self.identity = None
        self.matched = False
        for particle in self.particles:
            particle.reset()

    def __repr__(self):
        return f"TrackingSlot(index={self.index}, identity={self.identity!r}, matched={self.matched})"


class SlotPool:
    """
    Fixed-size pool of TrackingSlots with first-fit assignment.

    Usage:
        pool = SlotPool(max_poses=6, layout=LandmarkLayout(("nose", "left_wrist")))
        slot = pool.find_or_bind("person-1")
        if slot is not None:
            ...
    """

    def __init__(self, max_poses: int, layout: LandmarkLayout):
        if max_poses < 1:
            raise ValueError(f"max_poses must be >= 1, got {max_poses}")
        self.logger = logging.getLogger("SlotPool")
        self.max_poses = max_poses
        self.layout = layout
        self.slots: List[TrackingSlot] = [
            TrackingSlot(i, len(layout)) for i in range(max_poses)
        ]
        self.logger.info(
            f"Slot pool built: {max_poses} slots x {len(layout)} particles"
        )

    def find_bound(self, identity: Hashable) -> Optional[TrackingSlot]:
        for slot in self.slots:
            if slot.is_bound and slot.identity == identity:
                return slot
        return None

    def first_free(self) -> Optional[TrackingSlot]:
        for slot in self.slots:
            if not slot.is_bound:
                return slot
        return None

    def find_or_bind(self, identity: Hashable) -> Optional[TrackingSlot]:
        """
        Slot for identity: its bound slot, else the lowest-index free slot
        (now bound to it), else None when the pool is full.
        """
        slot = self.find_bound(identity)
        if slot is not None:
            return slot

        slot = self.first_free()
        if slot is not None:
            slot.bind(identity)
            self.logger.debug(f"Bound identity {identity!r} to slot {slot.index}")
        return slot

    def reconfigure(self, layout: LandmarkLayout):
        """
        Structural reset for a new landmark layout.

        Every slot is released and gets fresh particles, since existing
        particles no longer correspond to the new names.
        """
        self.layout = layout
        for slot in self.slots:
            slot.identity = None
            slot.matched = False
            slot.particles = [Particle() for _ in range(len(layout))]
        self.logger.info(f"Slot pool reset for layout {list(layout.names)}")

    def reset(self):
        for slot in self.slots:
            slot.reset()

    def bound_slots(self) -> List[TrackingSlot]:
        return [slot for slot in self.slots if slot.is_bound]

    def sorted_bound_slots(self) -> List[TrackingSlot]:
        """Bound slots ordered left to right by reference particle x."""
        return sorted(self.bound_slots(), key=lambda slot: slot.anchor_x)

    def all_particles(self) -> Iterable[Particle]:
        for slot in self.slots:
            yield from slot.particles

    @property
    def bound_count(self) -> int:
        return sum(1 for slot in self.slots if slot.is_bound)

    def __len__(self) -> int:
        return len(self.slots)

    def __iter__(self):
        return iter(self.slots)
