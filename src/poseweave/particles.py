"""
PoseWeave Particles - Smoothed, fading landmark points

A Particle is the visual stand-in for one tracked landmark of one entity.
It follows its landmark with an exponential moving average and carries a
bounded "stability" value that rises while the landmark is observed and
decays when it is not. Stability drives opacity, so entities fade in and
out instead of popping.

    stability: 0 ──(observed: +increment)──▶ STABILITY_MAX (100)
               ◀──(missed/decay: -decrement)──
"""

from typing import Optional

from .config import STABILITY_MAX, DecayMode, ParticlePolicy, GATED_POLICY
from .pose_types import Landmark
from .render_sink import Hsla, RenderSink


class Particle:
    """
    One smoothed 2D point with a stability accumulator.

    Attributes:
        x, y: Smoothed position (starts at the origin)
        stability: 0.0 to STABILITY_MAX
        score: Score of the observation applied this frame (0 when none)
    """

    __slots__ = ("x", "y", "stability", "score", "_observed")

    def __init__(self):
        self.x = 0.0
        self.y = 0.0
        self.stability = 0.0
        self.score = 0.0
        self._observed = False

    def update(
        self,
        observation: Optional[Landmark],
        policy: ParticlePolicy = GATED_POLICY,
        threshold: float = 0.0,
        smoothing: float = 0.2
    ) -> bool:
        """
        Blend toward an observation.

        Returns:
            True if the observation was applied
        """
        if observation is None:
            return False
        if policy.gate_on_score and observation.score < threshold:
            return False

        dx = self.x - observation.x
        dy = self.y - observation.y
        self.x -= dx * smoothing
        self.y -= dy * smoothing

        self.stability = min(STABILITY_MAX, self.stability + policy.increment)
        self.score = observation.score
        self._observed = True
        return True

    def post_update(self, group_matched: bool, policy: ParticlePolicy = GATED_POLICY):
        """End-of-frame decay. Must run once per frame after all updates."""
        if policy.decay_mode == DecayMode.CONTINUOUS:
            decay = True
        else:
            decay = not group_matched or not self._observed

        if decay:
            self.stability = max(0.0, self.stability - policy.decrement)

        if not self._observed:
            self.score = 0.0
        self._observed = False

    def reset(self):
        self.x = 0.0
        self.y = 0.0
        self.stability = 0.0
        self.score = 0.0
        self._observed = False

    @property
    def opacity(self) -> float:
        return self.stability / STABILITY_MAX

    @property
    def position(self):
        return (self.x, self.y)

    def render(self, sink: RenderSink, radius: float = 5, hue: float = 300.0):
        """Draw a disc whose opacity follows stability."""
        sink.fill_circle((self.x, self.y), radius, Hsla(hue, 1.0, 0.5, self.opacity))

    def __repr__(self):
        return f"Particle(x={self.x:.1f}, y={self.y:.1f}, stability={self.stability:g})"
