"""
PoseWeave Connections - Links between tracked entities

Bound slots are ordered left to right by their reference particle, and each
neighbouring pair (A, B) is woven together with colored strokes. A lone
entity is woven against itself.

Two modes:

PARTICLES   every particle of A x every particle of B
            alpha = min(stability) / 100 * rand[count]
            hue   = (i * 5 + count + now_ms / 100) % 360
ALL_PAIRS   a shuffled subset of landmark index pairs (i < j), A[i] -> B[j]
            opaque (0.9) then translucent (0.25), score-gated
            hue   = (c / len(pairs) * 90 + now_ms / 100) % 360

rand is a fixed sequence in [0.25, 1.0) generated once; count restarts at 0
on every render call and wraps around the sequence length.
"""

import time
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import STABILITY_MAX, OverlayConfig, RenderMode
from .render_sink import Hsla, RenderSink
from .slot_pool import TrackingSlot


OPAQUE_ALPHA = 0.9
TRANSLUCENT_ALPHA = 0.25


class PseudoRandomSequence:
    """Fixed sequence of link scale factors, indexed with wrap-around."""

    def __init__(self, length: int = 100, low: float = 0.25, high: float = 1.0,
                 seed: Optional[int] = None):
        rng = np.random.default_rng(seed)
        self.values = rng.uniform(low, high, size=length)

    def __getitem__(self, index: int) -> float:
        return float(self.values[index % len(self.values)])

    def __len__(self) -> int:
        return len(self.values)


class ConnectionRenderer:
    """
    Draws inter-entity links for the current slot state.

    Read-only with respect to slots: rendering twice with the same slots and
    the same now_ms produces the same draw commands.
    """

    def __init__(self, config: OverlayConfig):
        self.logger = logging.getLogger("ConnectionRenderer")
        self.config = config
        self.rand = PseudoRandomSequence(config.random_length, seed=config.random_seed)
        self._shuffle_rng = np.random.default_rng(config.random_seed)

        self._pair_key: Optional[Tuple] = None
        self.opaque_pairs: List[Tuple[int, int]] = []
        self.translucent_pairs: List[Tuple[int, int]] = []

    # ------------------------------------------------------------------ #
    # All-pairs setup
    # ------------------------------------------------------------------ #

    def _pair_settings(self, size: int) -> Tuple:
        cfg = self.config
        return (size, tuple(cfg.landmarks), cfg.num_opaque, cfg.num_translucent)

    def reshuffle(self, size: Optional[int] = None):
        """
        Draw a new random order for the all-pairs link list.

        Args:
            size: Particles per slot (default: last size seen, else the
                configured landmark count)
        """
        cfg = self.config
        if size is None:
            size = self._pair_key[0] if self._pair_key else len(cfg.landmarks)
        all_pairs = [(i, j) for i in range(size) for j in range(i + 1, size)]
        order = self._shuffle_rng.permutation(len(all_pairs))
        shuffled = [all_pairs[k] for k in order]

        num_opaque = len(shuffled) if cfg.num_opaque is None else cfg.num_opaque
        self.opaque_pairs = shuffled[:num_opaque]
        rest = shuffled[num_opaque:]
        num_translucent = len(rest) if cfg.num_translucent is None else cfg.num_translucent
        self.translucent_pairs = rest[:num_translucent]

        self._pair_key = self._pair_settings(size)
        self.logger.debug(
            f"All-pairs reshuffled: {len(self.opaque_pairs)} opaque, "
            f"{len(self.translucent_pairs)} translucent"
        )

    def _ensure_pairs(self, size: int):
        # Pairs index the pool's particles, which follow a new layout only
        # after the next frame pass
        if self._pair_key != self._pair_settings(size):
            self.reshuffle(size)

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #

    def render(self, slots: Sequence[TrackingSlot], sink: RenderSink,
               now_ms: Optional[float] = None) -> int:
        """
        Draw links between bound slots.

        Args:
            slots: Candidate slots (unbound ones are ignored)
            sink: Draw target
            now_ms: Wall-clock milliseconds for the hue cycle (default: now)

        Returns:
            Number of links drawn
        """
        if now_ms is None:
            now_ms = time.time() * 1000.0

        ordered = sorted(
            (slot for slot in slots if slot.is_bound),
            key=lambda slot: slot.anchor_x,
        )
        if not ordered:
            return 0

        if self.config.render_mode == RenderMode.ALL_PAIRS:
            return self._render_all_pairs(ordered, sink, now_ms)
        return self._render_particle_links(ordered, sink, now_ms)

    def _render_particle_links(self, ordered: List[TrackingSlot], sink: RenderSink,
                               now_ms: float) -> int:
        width = self.config.line_width
        time_hue = now_ms / 100.0
        count = 0

        if len(ordered) == 1:
            particles = ordered[0].particles
            for p1 in particles:
                for p2 in particles:
                    alpha = min(p1.stability, p2.stability) / STABILITY_MAX
                    alpha *= self.rand[count]
                    if alpha > 0:
                        count += 1
                        hue = (count + time_hue) % 360
                        sink.stroke_line((p1.x, p1.y), (p2.x, p2.y), width,
                                         Hsla(hue, 1.0, 0.5, alpha))

        for i in range(len(ordered) - 1):
            for p1 in ordered[i].particles:
                for p2 in ordered[i + 1].particles:
                    alpha = min(p1.stability, p2.stability) / STABILITY_MAX
                    alpha *= self.rand[count]
                    if alpha > 0:
                        count += 1
                        hue = (i * 5 + count + time_hue) % 360
                        sink.stroke_line((p1.x, p1.y), (p2.x, p2.y), width,
                                         Hsla(hue, 1.0, 0.5, alpha))
        return count

    def _render_all_pairs(self, ordered: List[TrackingSlot], sink: RenderSink,
                          now_ms: float) -> int:
        self._ensure_pairs(len(ordered[0].particles))
        if len(ordered) < 2:
            return 0

        count = 0
        for i in range(len(ordered) - 1):
            left, right = ordered[i], ordered[i + 1]
            count = self._draw_pair_list(left, right, self.opaque_pairs, OPAQUE_ALPHA,
                                         sink, now_ms, count)
            count = self._draw_pair_list(left, right, self.translucent_pairs, TRANSLUCENT_ALPHA,
                                         sink, now_ms, count)
        return count

    def _draw_pair_list(self, left: TrackingSlot, right: TrackingSlot,
                        pairs: List[Tuple[int, int]], level: float,
                        sink: RenderSink, now_ms: float, count: int) -> int:
        threshold = self.config.score_threshold
        width = self.config.line_width
        time_hue = now_ms / 100.0
        c = 0
        for a, b in pairs:
            p1 = left.particles[a]
            p2 = right.particles[b]
            if p1.score < threshold or p2.score < threshold:
                continue
            c += 1
            alpha = level * self.rand[count]
            count += 1
            hue = (c / len(pairs) * 90 + time_hue) % 360
            sink.stroke_line((p1.x, p1.y), (p2.x, p2.y), width, Hsla(hue, 1.0, 0.5, alpha))
        return count
