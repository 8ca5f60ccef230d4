"""
PoseWeave Render Sinks - Primitive draw targets

The overlay never touches pixels directly. It issues two primitives to a
RenderSink:

    fill_circle(center, radius, color)
    stroke_line(start, end, width, color)

RecordingSink keeps the commands (tests, replays); OpenCVSink blends them
onto a BGR frame.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np
import cv2


@dataclass(frozen=True)
class Hsla:
    """
    HSL color with alpha.

    Attributes:
        hue: Degrees, wrapped into [0, 360)
        saturation: 0.0 to 1.0
        lightness: 0.0 to 1.0
        alpha: 0.0 to 1.0
    """
    hue: float
    saturation: float = 1.0
    lightness: float = 0.5
    alpha: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "hue", self.hue % 360.0)

    def to_bgr(self) -> Tuple[int, int, int]:
        """Convert to an 8-bit BGR tuple (alpha ignored)."""
        hls = np.array(
            [[[self.hue, self.lightness, self.saturation]]], dtype=np.float32
        )
        bgr = cv2.cvtColor(hls, cv2.COLOR_HLS2BGR)[0, 0]
        return tuple(int(round(c * 255)) for c in bgr)

    @classmethod
    def from_hex(cls, value: str, alpha: float = 1.0) -> "Hsla":
        """Parse '#rrggbb'."""
        value = value.lstrip("#")
        r, g, b = (int(value[k:k + 2], 16) / 255.0 for k in (0, 2, 4))
        bgr = np.array([[[b, g, r]]], dtype=np.float32)
        h, l, s = cv2.cvtColor(bgr, cv2.COLOR_BGR2HLS)[0, 0]
        return cls(float(h), float(s), float(l), alpha)

    def css(self) -> str:
        return (
            f"hsla({self.hue:g}, {self.saturation * 100:g}%, "
            f"{self.lightness * 100:g}%, {self.alpha:g})"
        )


@dataclass(frozen=True)
class CircleCommand:
    center: Tuple[float, float]
    radius: float
    color: Hsla


@dataclass(frozen=True)
class LineCommand:
    start: Tuple[float, float]
    end: Tuple[float, float]
    width: float
    color: Hsla


DrawCommand = Union[CircleCommand, LineCommand]


class RenderSink(ABC):
    """Target for primitive draw commands."""

    @abstractmethod
    def fill_circle(self, center: Tuple[float, float], radius: float, color: Hsla):
        """Draw a filled disc."""
        pass

    @abstractmethod
    def stroke_line(
        self,
        start: Tuple[float, float],
        end: Tuple[float, float],
        width: float,
        color: Hsla
    ):
        """Draw a stroked segment."""
        pass


class RecordingSink(RenderSink):
    """Sink that records every command in order."""

    def __init__(self):
        self.commands: List[DrawCommand] = []

    def fill_circle(self, center, radius, color):
        self.commands.append(CircleCommand((center[0], center[1]), radius, color))

    def stroke_line(self, start, end, width, color):
        self.commands.append(LineCommand((start[0], start[1]), (end[0], end[1]), width, color))

    @property
    def circles(self) -> List[CircleCommand]:
        return [c for c in self.commands if isinstance(c, CircleCommand)]

    @property
    def lines(self) -> List[LineCommand]:
        return [c for c in self.commands if isinstance(c, LineCommand)]

    def clear(self):
        self.commands.clear()


class OpenCVSink(RenderSink):
    """
    Draws commands onto a BGR frame with per-command alpha blending.

    Each primitive is drawn on a copy of its bounding region and blended back
    with cv2.addWeighted, so translucent links stay cheap even when hundreds
    are issued per frame. Primitives with alpha below min_alpha are skipped.

    Usage:
        sink = OpenCVSink(frame)
        overlay.process(poses, sink)
        cv2.imshow("PoseWeave", sink.frame)
    """

    def __init__(self, frame: np.ndarray, min_alpha: float = 0.01, mirror: bool = False):
        """
        Args:
            frame: BGR image to draw on (modified in place)
            min_alpha: Commands fainter than this are dropped
            mirror: Flip x coordinates around the frame center
        """
        self.frame = frame
        self.min_alpha = min_alpha
        self.mirror = mirror

    def _point(self, p: Tuple[float, float]) -> Tuple[int, int]:
        x, y = p
        if self.mirror:
            x = self.frame.shape[1] - 1 - x
        return (int(round(x)), int(round(y)))

    def _roi(self, points: List[Tuple[int, int]], pad: int) -> Optional[Tuple[int, int, int, int]]:
        """Clipped (x1, y1, x2, y2) box around points, or None if off-frame."""
        h, w = self.frame.shape[:2]
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        x1 = max(0, min(xs) - pad)
        y1 = max(0, min(ys) - pad)
        x2 = min(w, max(xs) + pad + 1)
        y2 = min(h, max(ys) + pad + 1)
        if x1 >= x2 or y1 >= y2:
            return None
        return x1, y1, x2, y2

    def _blend_roi(self, box: Tuple[int, int, int, int], overlay: np.ndarray, alpha: float):
        x1, y1, x2, y2 = box
        target = self.frame[y1:y2, x1:x2]
        if alpha >= 1.0:
            target[:] = overlay
            return
        cv2.addWeighted(overlay, alpha, target, 1.0 - alpha, 0, target)

    def fill_circle(self, center, radius, color):
        if color.alpha < self.min_alpha:
            return
        c = self._point(center)
        r = int(radius)
        box = self._roi([c], r + 1)
        if box is None:
            return
        x1, y1, x2, y2 = box
        overlay = self.frame[y1:y2, x1:x2].copy()
        cv2.circle(overlay, (c[0] - x1, c[1] - y1), r, color.to_bgr(), -1, cv2.LINE_AA)
        self._blend_roi(box, overlay, color.alpha)

    def stroke_line(self, start, end, width, color):
        if color.alpha < self.min_alpha:
            return
        p1 = self._point(start)
        p2 = self._point(end)
        thickness = max(1, int(width))
        box = self._roi([p1, p2], thickness + 1)
        if box is None:
            return
        x1, y1, x2, y2 = box
        overlay = self.frame[y1:y2, x1:x2].copy()
        cv2.line(
            overlay, (p1[0] - x1, p1[1] - y1), (p2[0] - x1, p2[1] - y1),
            color.to_bgr(), thickness, cv2.LINE_AA
        )
        self._blend_roi(box, overlay, color.alpha)
