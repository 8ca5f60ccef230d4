"""
PoseWeave Configuration - Explicit overlay settings

Everything the overlay reads per frame lives in one OverlayConfig object that
is handed to the overlay at construction (and may be swapped between frames).
Values can also be loaded from the environment or a .env file:

    POSEWEAVE_MAX_POSES=4
    POSEWEAVE_SCORE_THRESHOLD=0.4
    POSEWEAVE_LANDMARKS=nose,left_wrist,right_wrist
    POSEWEAVE_POLICY=continuous
    POSEWEAVE_RENDER_MODE=all_pairs
"""

import os
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv


STABILITY_MAX = 100.0

# Landmarks the demo exposes as toggles, in toggle order
SUPPORTED_LANDMARKS: Tuple[str, ...] = (
    "nose",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)


class DecayMode(Enum):
    """When particle stability decays."""
    ON_MISS = "on_miss"          # Only when the landmark/group was not matched
    CONTINUOUS = "continuous"    # Every frame, matched or not


class RenderMode(Enum):
    """How tracked entities are linked to one another."""
    PARTICLES = "particles"      # Stability-weighted links between smoothed particles
    ALL_PAIRS = "all_pairs"      # Shuffled landmark pairs, opaque + translucent


@dataclass(frozen=True)
class ParticlePolicy:
    """
    Stability/update rules for particles.

    Attributes:
        name: Policy name used for lookup
        gate_on_score: Skip observations whose score is below the threshold
        increment: Stability gained per applied observation
        decrement: Stability lost per decaying frame
        decay_mode: Whether decay happens on miss only or every frame
    """
    name: str
    gate_on_score: bool
    increment: float
    decrement: float
    decay_mode: DecayMode


GATED_POLICY = ParticlePolicy(
    name="gated",
    gate_on_score=True,
    increment=2.0,
    decrement=2.0,
    decay_mode=DecayMode.ON_MISS,
)

CONTINUOUS_POLICY = ParticlePolicy(
    name="continuous",
    gate_on_score=False,
    increment=1.0,
    decrement=0.5,
    decay_mode=DecayMode.CONTINUOUS,
)

PARTICLE_POLICIES = {
    GATED_POLICY.name: GATED_POLICY,
    CONTINUOUS_POLICY.name: CONTINUOUS_POLICY,
}


def get_policy(name: str) -> ParticlePolicy:
    """Look up a particle policy by name."""
    try:
        return PARTICLE_POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown particle policy '{name}' (choose from {sorted(PARTICLE_POLICIES)})"
        ) from None


@dataclass
class OverlayConfig:
    """
    Overlay settings read by the frame pass and renderers.

    Attributes:
        landmarks: Enabled landmark names, in particle order
        score_threshold: Minimum landmark score to count as observed
        max_poses: Number of tracking slots
        smoothing: EMA blend factor toward each new observation
        policy: Particle stability/update policy
        render_mode: Link rendering mode
        num_opaque: All-pairs mode: opaque pair count (None = all)
        num_translucent: All-pairs mode: translucent pair count (None = rest)
        random_length: Length of the pseudo-random link scaling sequence
        random_seed: Seed for link scaling and pair shuffling (None = random)
        line_width: Link stroke width in pixels
        particle_radius: Particle disc radius in pixels
        particle_hue: Particle disc hue in degrees
        show_skeleton: Also draw raw keypoints + skeleton per pose
    """
    landmarks: Tuple[str, ...] = SUPPORTED_LANDMARKS
    score_threshold: float = 0.3
    max_poses: int = 6
    smoothing: float = 0.2
    policy: ParticlePolicy = field(default=GATED_POLICY)
    render_mode: RenderMode = RenderMode.PARTICLES
    num_opaque: Optional[int] = None
    num_translucent: Optional[int] = None
    random_length: int = 100
    random_seed: Optional[int] = None
    line_width: int = 4
    particle_radius: int = 5
    particle_hue: float = 300.0
    show_skeleton: bool = False

    def __post_init__(self):
        self.landmarks = tuple(self.landmarks)
        if isinstance(self.policy, str):
            self.policy = get_policy(self.policy)
        if isinstance(self.render_mode, str):
            self.render_mode = RenderMode(self.render_mode)
        self.validate()

    def validate(self):
        """Raise ValueError if any setting is out of range."""
        if not self.landmarks:
            raise ValueError("At least one landmark must be enabled")
        if len(set(self.landmarks)) != len(self.landmarks):
            raise ValueError(f"Duplicate landmark names: {self.landmarks}")
        if self.max_poses < 1:
            raise ValueError(f"max_poses must be >= 1, got {self.max_poses}")
        if not 0.0 < self.smoothing <= 1.0:
            raise ValueError(f"smoothing must be in (0, 1], got {self.smoothing}")
        if self.random_length < 1:
            raise ValueError(f"random_length must be >= 1, got {self.random_length}")
        for name in ("num_opaque", "num_translucent"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")
        if self.line_width < 1 or self.particle_radius < 1:
            raise ValueError("line_width and particle_radius must be >= 1")

    def with_landmarks(self, *names: str) -> "OverlayConfig":
        """Copy of this config with a different landmark selection."""
        return replace(self, landmarks=tuple(names))

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "OverlayConfig":
        """
        Build a config from POSEWEAVE_* environment variables.

        A .env file is loaded first (explicit path, else the current directory);
        variables already set in the process environment win.
        """
        logger = logging.getLogger("OverlayConfig")
        if env_file is not None:
            load_dotenv(env_file, override=False)
        else:
            load_dotenv(Path.cwd() / ".env", override=False)

        kwargs = {}
        env = os.environ

        if env.get("POSEWEAVE_LANDMARKS"):
            kwargs["landmarks"] = tuple(
                name.strip() for name in env["POSEWEAVE_LANDMARKS"].split(",") if name.strip()
            )
        if env.get("POSEWEAVE_SCORE_THRESHOLD"):
            kwargs["score_threshold"] = float(env["POSEWEAVE_SCORE_THRESHOLD"])
        if env.get("POSEWEAVE_MAX_POSES"):
            kwargs["max_poses"] = int(env["POSEWEAVE_MAX_POSES"])
        if env.get("POSEWEAVE_SMOOTHING"):
            kwargs["smoothing"] = float(env["POSEWEAVE_SMOOTHING"])
        if env.get("POSEWEAVE_POLICY"):
            kwargs["policy"] = get_policy(env["POSEWEAVE_POLICY"])
        if env.get("POSEWEAVE_RENDER_MODE"):
            kwargs["render_mode"] = RenderMode(env["POSEWEAVE_RENDER_MODE"])
        if env.get("POSEWEAVE_NUM_OPAQUE"):
            kwargs["num_opaque"] = int(env["POSEWEAVE_NUM_OPAQUE"])
        if env.get("POSEWEAVE_NUM_TRANSLUCENT"):
            kwargs["num_translucent"] = int(env["POSEWEAVE_NUM_TRANSLUCENT"])
        if env.get("POSEWEAVE_RANDOM_SEED"):
            kwargs["random_seed"] = int(env["POSEWEAVE_RANDOM_SEED"])

        if kwargs:
            logger.info(f"Config overrides from environment: {sorted(kwargs)}")
        return cls(**kwargs)
