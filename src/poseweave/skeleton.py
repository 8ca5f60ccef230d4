"""
Debug view: raw keypoints and COCO-17 skeleton per detected pose.
"""

from typing import Iterable, Tuple

from .pose_types import Pose
from .render_sink import Hsla, RenderSink


COCO17_NAMES: Tuple[str, ...] = (
    "nose",
    "left_eye",
    "right_eye",
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

# Index pairs into COCO17_NAMES
COCO17_EDGES: Tuple[Tuple[int, int], ...] = (
    (0, 1), (0, 2), (1, 3), (2, 4),
    (5, 6), (5, 7), (5, 11), (6, 8), (6, 12),
    (7, 9), (8, 10), (11, 12), (11, 13), (12, 14),
    (13, 15), (14, 16),
)

COLOR_PALETTE = (
    "#ffffff", "#800000", "#469990", "#e6194b", "#42d4f4", "#fabed4", "#aaffc3",
    "#9a6324", "#000075", "#f58231", "#4363d8", "#ffd8b1", "#dcbeff", "#808000",
    "#ffe119", "#911eb4", "#bfef45", "#f032e6", "#3cb44b", "#a9a9a9",
)

MIDDLE_COLOR = Hsla(0.0, 1.0, 0.5)       # Red
LEFT_COLOR = Hsla(120.0, 1.0, 0.25)      # Green
RIGHT_COLOR = Hsla(39.0, 1.0, 0.5)       # Orange
WHITE = Hsla(0.0, 0.0, 1.0)

KEYPOINT_RADIUS = 4
SKELETON_WIDTH = 2


def identity_color(identity) -> Hsla:
    """Palette color for integer identities, white for anything else."""
    if isinstance(identity, int) and not isinstance(identity, bool):
        return Hsla.from_hex(COLOR_PALETTE[identity % len(COLOR_PALETTE)])
    return WHITE


def _side_color(name: str) -> Hsla:
    if name.startswith("left_"):
        return LEFT_COLOR
    if name.startswith("right_"):
        return RIGHT_COLOR
    return MIDDLE_COLOR


def draw_keypoints(pose: Pose, sink: RenderSink, threshold: float = 0.0):
    for lm in pose.landmarks:
        if lm.score >= threshold:
            sink.fill_circle((lm.x, lm.y), KEYPOINT_RADIUS, _side_color(lm.name))


def draw_skeleton(pose: Pose, sink: RenderSink, threshold: float = 0.0):
    color = identity_color(pose.identity)
    points = pose.by_name()
    for a, b in COCO17_EDGES:
        kp1 = points.get(COCO17_NAMES[a])
        kp2 = points.get(COCO17_NAMES[b])
        if kp1 is None or kp2 is None:
            continue
        if kp1.score >= threshold and kp2.score >= threshold:
            sink.stroke_line((kp1.x, kp1.y), (kp2.x, kp2.y), SKELETON_WIDTH, color)


def draw_poses(poses: Iterable[Pose], sink: RenderSink, threshold: float = 0.0):
    """Skeleton first, keypoints on top, for every pose."""
    for pose in poses:
        draw_skeleton(pose, sink, threshold)
        draw_keypoints(pose, sink, threshold)
