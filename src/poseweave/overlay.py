"""
PoseWeave Overlay - One call per frame

Ties the frame pass and the renderers together:

    poses ──▶ FrameUpdatePass.run ──▶ SlotPool
                                        │
              particle discs  ◀─────────┤
              ConnectionRenderer ◀──────┘ ──▶ RenderSink

The pool is only read after the frame pass has fully completed.
"""

import time
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .config import OverlayConfig
from .connections import ConnectionRenderer
from .frame_pass import FrameReport, FrameUpdatePass
from .pose_types import Pose
from .render_sink import RenderSink
from .skeleton import draw_poses
from .slot_pool import SlotPool


@dataclass
class OverlayStats:
    """Per-frame rendering counts."""
    report: FrameReport
    particles_drawn: int = 0
    links_drawn: int = 0
    update_ms: float = 0.0
    render_ms: float = 0.0


class PoseOverlay:
    """
    Stateful pose overlay.

    Usage:
        overlay = PoseOverlay(OverlayConfig(max_poses=4))
        while running:
            poses = source.infer(frame)
            stats = overlay.process(poses, OpenCVSink(frame))
    """

    def __init__(self, config: Optional[OverlayConfig] = None):
        self.logger = logging.getLogger("PoseOverlay")
        self.config = config or OverlayConfig()
        self.frame_pass = FrameUpdatePass(self.config)
        self.connections = ConnectionRenderer(self.config)

    @property
    def pool(self) -> SlotPool:
        return self.frame_pass.pool

    def set_config(self, config: OverlayConfig):
        """
        Swap configuration between frames.

        Landmark changes reset the pool on the next update; a capacity change
        rebuilds it now; random sequence changes rebuild the link renderer.
        """
        config.validate()
        old = self.config
        self.config = config

        if config.max_poses != old.max_poses:
            self.logger.info(f"Capacity changed {old.max_poses} -> {config.max_poses}, rebuilding pool")
            self.frame_pass = FrameUpdatePass(config)
        else:
            self.frame_pass.config = config

        if (config.random_length, config.random_seed) != (old.random_length, old.random_seed):
            self.connections = ConnectionRenderer(config)
        else:
            self.connections.config = config

    def update(self, poses: Iterable[Pose]) -> FrameReport:
        """Run the frame pass only."""
        return self.frame_pass.run(poses)

    def render(self, sink: RenderSink, now_ms: Optional[float] = None) -> int:
        """Draw particle discs, then links. Returns links drawn."""
        cfg = self.config
        for slot in self.pool.sorted_bound_slots():
            for particle in slot.particles:
                particle.render(sink, cfg.particle_radius, cfg.particle_hue)
        return self.connections.render(self.pool.slots, sink, now_ms)

    def process(self, poses: Iterable[Pose], sink: RenderSink,
                now_ms: Optional[float] = None) -> OverlayStats:
        """Update with this frame's poses and draw the result."""
        poses: List[Pose] = list(poses)

        t0 = time.perf_counter()
        report = self.update(poses)
        t1 = time.perf_counter()

        if self.config.show_skeleton:
            draw_poses(poses, sink, self.config.score_threshold)
        links = self.render(sink, now_ms)
        t2 = time.perf_counter()

        stats = OverlayStats(
            report=report,
            particles_drawn=len(self.pool.bound_slots()) * len(self.pool.layout),
            links_drawn=links,
            update_ms=(t1 - t0) * 1000,
            render_ms=(t2 - t1) * 1000,
        )
        if report.dropped:
            self.logger.debug(f"{len(report.dropped)} pose(s) over capacity this frame")
        return stats

    def reset(self):
        self.pool.reset()
