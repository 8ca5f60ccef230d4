"""
PoseWeave - Decaying particle overlay for live multi-person pose streams

Turns noisy per-frame pose detections into stable, fading visuals:

- Fixed pool of identity slots with first-fit assignment
- One smoothed, stability-weighted particle per tracked landmark
- Colored links woven between neighbouring people (or a lone person and
  themself)
- Rendering through a primitive sink (OpenCV frame, or recorded for tests)

Quick Start:
    from poseweave import (
        PoseOverlay, OverlayConfig, OpenCVSink, UltralyticsPoseSource, ThreadedVideoCapture
    )

    overlay = PoseOverlay(OverlayConfig(max_poses=6))
    source = UltralyticsPoseSource("yolo11n-pose.pt")
    video = ThreadedVideoCapture(source=0)
    video.start()

    while True:
        frame = video.latest_frame
        poses = source.infer(frame)
        overlay.process(poses, OpenCVSink(frame))
        display(frame)
"""

__version__ = "0.1.0"

from .config import (
    STABILITY_MAX,
    SUPPORTED_LANDMARKS,
    DecayMode,
    RenderMode,
    ParticlePolicy,
    GATED_POLICY,
    CONTINUOUS_POLICY,
    PARTICLE_POLICIES,
    get_policy,
    OverlayConfig,
)

from .pose_types import Landmark, Pose

from .render_sink import (
    Hsla,
    CircleCommand,
    LineCommand,
    RenderSink,
    RecordingSink,
    OpenCVSink,
)

from .particles import Particle
from .slot_pool import LandmarkLayout, TrackingSlot, SlotPool
from .frame_pass import FrameReport, FrameUpdatePass
from .connections import PseudoRandomSequence, ConnectionRenderer
from .overlay import OverlayStats, PoseOverlay
from .pose_source import PoseSource, UltralyticsPoseSource
from .video_pipeline import (
    ThreadedVideoCapture,
    VideoFileReader,
    PerformanceOverlay,
    grayscale_backdrop,
    mirror,
)

__all__ = [
    "__version__",

    # Config
    "STABILITY_MAX",
    "SUPPORTED_LANDMARKS",
    "DecayMode",
    "RenderMode",
    "ParticlePolicy",
    "GATED_POLICY",
    "CONTINUOUS_POLICY",
    "PARTICLE_POLICIES",
    "get_policy",
    "OverlayConfig",

    # Pose records
    "Landmark",
    "Pose",

    # Rendering
    "Hsla",
    "CircleCommand",
    "LineCommand",
    "RenderSink",
    "RecordingSink",
    "OpenCVSink",

    # Core
    "Particle",
    "LandmarkLayout",
    "TrackingSlot",
    "SlotPool",
    "FrameReport",
    "FrameUpdatePass",
    "PseudoRandomSequence",
    "ConnectionRenderer",
    "OverlayStats",
    "PoseOverlay",

    # Sources
    "PoseSource",
    "UltralyticsPoseSource",

    # Video
    "ThreadedVideoCapture",
    "VideoFileReader",
    "PerformanceOverlay",
    "grayscale_backdrop",
    "mirror",
]
