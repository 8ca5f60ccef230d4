"""
Pose record value types shared by pose sources and the overlay.
"""

from dataclasses import dataclass
from typing import Hashable, Optional, Tuple, Dict


@dataclass(frozen=True)
class Landmark:
    """A single scored landmark in pixel coordinates."""
    name: str
    x: float
    y: float
    score: float
    z: Optional[float] = None


@dataclass(frozen=True)
class Pose:
    """
    One detected pose for one frame.

    Attributes:
        identity: Opaque identity token from the detector/tracker
        landmarks: Scored landmarks, in detector order
    """
    identity: Hashable
    landmarks: Tuple[Landmark, ...] = ()

    def landmark(self, name: str) -> Optional[Landmark]:
        for lm in self.landmarks:
            if lm.name == name:
                return lm
        return None

    def by_name(self) -> Dict[str, Landmark]:
        return {lm.name: lm for lm in self.landmarks}

    @classmethod
    def from_points(cls, identity: Hashable, points: Dict[str, Tuple[float, float, float]]) -> "Pose":
        """Build a pose from {name: (x, y, score)}."""
        return cls(
            identity=identity,
            landmarks=tuple(Landmark(name, x, y, score) for name, (x, y, score) in points.items()),
        )
