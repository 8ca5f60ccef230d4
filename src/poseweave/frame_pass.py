"""
PoseWeave Frame Pass - Per-frame slot assignment and particle advance

Order within one frame is fixed:

    1. ASSIGN    each pose (arrival order) -> bound slot | first free slot | dropped
                 routed landmarks -> Particle.update
    2. DECAY     every particle of every slot -> Particle.post_update(matched)
    3. RECLAIM   bound-but-unmatched slots are released; matched flags cleared

Reclamation reads the match flags, so it always runs after every decay.
"""

import logging
from dataclasses import dataclass, field
from typing import Hashable, Iterable, List

from .config import OverlayConfig
from .pose_types import Pose
from .slot_pool import LandmarkLayout, SlotPool, TrackingSlot


@dataclass
class FrameReport:
    """What one frame pass did."""
    frame_number: int
    matched: List[Hashable] = field(default_factory=list)
    bound: List[Hashable] = field(default_factory=list)
    dropped: List[Hashable] = field(default_factory=list)
    released: List[Hashable] = field(default_factory=list)
    layout_reset: bool = False

    @property
    def pose_count(self) -> int:
        return len(self.matched) + len(self.dropped)


class FrameUpdatePass:
    """
    Drives a SlotPool from per-frame pose detections.

    Usage:
        frame_pass = FrameUpdatePass(config)
        report = frame_pass.run(poses)
        for slot in frame_pass.pool.sorted_bound_slots():
            ...
    """

    def __init__(self, config: OverlayConfig):
        self.logger = logging.getLogger("FrameUpdatePass")
        self.config = config
        self.pool = SlotPool(config.max_poses, LandmarkLayout(config.landmarks))
        self._frame_number = 0

    def _sync_layout(self) -> bool:
        """Rebuild the pool if the enabled landmarks changed. Returns True on reset."""
        if self.pool.layout.matches(self.config.landmarks):
            return False
        self.pool.reconfigure(LandmarkLayout(self.config.landmarks))
        return True

    def _route(self, slot: TrackingSlot, pose: Pose):
        cfg = self.config
        observations = self.pool.layout.extract(pose)
        for particle, observation in zip(slot.particles, observations):
            particle.update(
                observation,
                policy=cfg.policy,
                threshold=cfg.score_threshold,
                smoothing=cfg.smoothing,
            )
        slot.matched = True

    def run(self, poses: Iterable[Pose]) -> FrameReport:
        """Run one full frame pass."""
        self._frame_number += 1
        report = FrameReport(frame_number=self._frame_number)
        report.layout_reset = self._sync_layout()

        # 1. Assign
        for pose in poses:
            is_new = self.pool.find_bound(pose.identity) is None
            slot = self.pool.find_or_bind(pose.identity)
            if slot is None:
                report.dropped.append(pose.identity)
                self.logger.debug(
                    f"Frame {self._frame_number}: pool full, dropped {pose.identity!r}"
                )
                continue
            if is_new:
                report.bound.append(pose.identity)
            self._route(slot, pose)
            report.matched.append(pose.identity)

        # 2. Decay
        policy = self.config.policy
        for slot in self.pool:
            for particle in slot.particles:
                particle.post_update(slot.matched, policy)

        # 3. Reclaim
        for slot in self.pool:
            if slot.is_bound and not slot.matched:
                report.released.append(slot.identity)
                self.logger.debug(
                    f"Frame {self._frame_number}: released slot {slot.index} ({slot.identity!r})"
                )
                slot.release()
            slot.matched = False

        return report

    @property
    def frame_number(self) -> int:
        return self._frame_number
