#!/usr/bin/env python3
"""
PoseWeave - Live Demo

Runs a YOLO pose model on a webcam (or video file) and weaves a fading
particle overlay between everyone in view:
1. The camera image is mirrored and shown in grayscale
2. Each tracked person gets one particle per enabled landmark
3. Neighbouring people (left to right) are linked with colored strokes
4. People who leave the frame fade out; new people fade in

Usage:
    python main_demo.py

Controls:
    - F: Toggle fullscreen
    - M: Switch link mode (particles / all pairs)
    - SPACE: Reshuffle all-pairs links
    - P: Switch particle policy (gated / continuous)
    - K: Toggle keypoint + skeleton debug view
    - R: Reset all slots
    - Q/ESC: Quit
"""

import sys
import time
import logging
import argparse
from dataclasses import replace
from typing import Optional

import cv2  # pyright: ignore[reportMissingImports]
import numpy as np  # pyright: ignore[reportMissingImports]

from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from poseweave.config import OverlayConfig, RenderMode, PARTICLE_POLICIES, SUPPORTED_LANDMARKS, get_policy
from poseweave.overlay import PoseOverlay
from poseweave.pose_source import UltralyticsPoseSource
from poseweave.render_sink import OpenCVSink
from poseweave.video_pipeline import (
    ThreadedVideoCapture,
    VideoFileReader,
    PerformanceOverlay,
    grayscale_backdrop,
    mirror,
)

VIDEO_EXTENSIONS = {
    ".mp4", ".mov", ".avi", ".mkv", ".m4v", ".wmv", ".webm", ".mpeg", ".mpg"
}


class PoseWeaveDemo:
    """
    Interactive live overlay.
    """

    WINDOW_NAME = "PoseWeave"

    def __init__(
            self,
            source: int | str = 0,
            config: Optional[OverlayConfig] = None,
            model_path: str = "yolo11n-pose.pt",
            device: str = "",
            resolution: tuple = None,
            mirror: bool = True,
            loop: bool = False
    ):
        """
        Args:
            source: Camera index or video file path
            config: Overlay configuration
            model_path: YOLO pose weights
            device: Inference device ('' = auto)
            resolution: Target resolution (width, height)
            mirror: Show a selfie (mirrored) view
            loop: Loop video files
        """
        self.source = source
        self.config = config or OverlayConfig()
        self.model_path = model_path
        self.device = device
        self.resolution = resolution
        self.mirror = mirror
        self.loop = loop

        self.video = None
        self.pose_source = None
        self.overlay = PoseOverlay(self.config)
        self.perf = PerformanceOverlay()

        self._running = False
        self._fullscreen = False

        self.logger = logging.getLogger("PoseWeaveDemo")

    def _open_video(self) -> bool:
        path = None
        if isinstance(self.source, str) and "://" not in self.source:
            path = Path(self.source).expanduser()

        if path is not None and path.is_file():
            self.video = VideoFileReader(str(path), loop=self.loop, resolution=self.resolution)
        elif path is not None and path.suffix.lower() in VIDEO_EXTENSIONS:
            self.logger.error(f"Video file not found: {path}")
            return False
        else:
            self.video = ThreadedVideoCapture(self.source, resolution=self.resolution)

        if self.video.start():
            return True
        self.logger.error(f"Could not start video from {self.source!r}")
        return False

    def _apply_config(self, config: OverlayConfig):
        self.config = config
        self.overlay.set_config(config)

    def _toggle_fullscreen(self):
        self._fullscreen = not self._fullscreen
        mode = cv2.WINDOW_FULLSCREEN if self._fullscreen else cv2.WINDOW_NORMAL
        cv2.setWindowProperty(self.WINDOW_NAME, cv2.WND_PROP_FULLSCREEN, mode)

    def _handle_key(self, key: int):
        if key in (ord('q'), 27):
            self._running = False
        elif key == ord('f'):
            self._toggle_fullscreen()
        elif key == ord('m'):
            mode = (RenderMode.ALL_PAIRS if self.config.render_mode == RenderMode.PARTICLES
                    else RenderMode.PARTICLES)
            self._apply_config(replace(self.config, render_mode=mode))
            self.logger.info(f"Link mode: {mode.value}")
        elif key == ord(' '):
            self.overlay.connections.reshuffle()
        elif key == ord('p'):
            names = sorted(PARTICLE_POLICIES)
            current = names.index(self.config.policy.name)
            policy = get_policy(names[(current + 1) % len(names)])
            self._apply_config(replace(self.config, policy=policy))
            self.logger.info(f"Particle policy: {policy.name}")
        elif key == ord('k'):
            self._apply_config(replace(self.config, show_skeleton=not self.config.show_skeleton))
        elif key == ord('r'):
            self.overlay.reset()
            self.logger.info("All slots reset")

    def _compose(self, frame: np.ndarray) -> np.ndarray:
        """Detect on the raw frame, draw on a gray (optionally mirrored) backdrop."""
        poses = self.pose_source.infer(frame)

        canvas = grayscale_backdrop(frame)
        if self.mirror:
            # Pose coordinates stay in camera space; the sink flips them
            canvas = mirror(canvas)
        sink = OpenCVSink(canvas, mirror=self.mirror)
        stats = self.overlay.process(poses, sink)

        capture = self.video.stats
        self.perf.update()
        self.perf.draw(
            canvas,
            f"people: {self.overlay.pool.bound_count}/{self.config.max_poses}  "
            f"lag: {capture.latency_ms:.0f}ms  skipped: {capture.skipped}  "
            f"links: {stats.links_drawn}  "
            f"update: {stats.update_ms:.1f}ms  render: {stats.render_ms:.1f}ms"
        )
        return canvas

    def run(self):
        """Run the demo."""
        self.logger.info("Starting PoseWeave demo...")

        try:
            self.pose_source = UltralyticsPoseSource(self.model_path, device=self.device)
        except RuntimeError as e:
            self.logger.error(str(e))
            return

        if not self._open_video():
            return

        cv2.namedWindow(self.WINDOW_NAME, cv2.WINDOW_NORMAL)
        self._running = True

        try:
            while self._running:
                frame = self.video.latest_frame
                if frame is None:
                    if not self.video.is_running:
                        self.logger.info("Video source finished")
                        break
                    time.sleep(0.002)
                    continue

                cv2.imshow(self.WINDOW_NAME, self._compose(frame))
                key = cv2.waitKey(1) & 0xFF
                if key != 255:
                    self._handle_key(key)

        except KeyboardInterrupt:
            self.logger.info("Interrupted by user")
        finally:
            self.video.stop()
            self.pose_source.close()
            cv2.destroyAllWindows()
            self.logger.info("Demo stopped.")


def video_source(value: str) -> int | str:
    """argparse type: camera index, or a path / URL kept as text."""
    if value.lower() == "camera":
        return 0
    return int(value) if value.isdigit() else value


def frame_size(value: str) -> tuple:
    """argparse type: 'WxH' -> (W, H)."""
    width, sep, height = value.lower().partition("x")
    if not sep or not width.isdigit() or not height.isdigit():
        raise argparse.ArgumentTypeError(f"expected WxH (e.g. 1280x720), got {value!r}")
    return int(width), int(height)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="PoseWeave live pose overlay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Controls:
  F            Toggle fullscreen
  M            Switch link mode (particles / all pairs)
  SPACE        Reshuffle all-pairs links
  P            Switch particle policy (gated / continuous)
  K            Toggle keypoint + skeleton debug view
  R            Reset all slots
  Q/ESC        Quit

Settings can also come from POSEWEAVE_* variables or a .env file;
command-line flags win.

Examples:
  python main_demo.py                          # Default webcam (0)
  python main_demo.py --source 1               # Webcam index 1
  python main_demo.py --source dance.mp4 --loop
  python main_demo.py --mode all_pairs --opaque 12 --translucent 30
  python main_demo.py --landmarks nose,left_wrist,right_wrist
        """
    )

    parser.add_argument("--source", "-s", type=video_source, default=0,
                        help="Video source: camera index (0, 1, ...) or file path")
    parser.add_argument("--model", default="yolo11n-pose.pt", help="YOLO pose weights")
    parser.add_argument("--device", default="", help="Inference device (cpu, mps, 0, ...)")
    parser.add_argument("--resolution", "-r", type=frame_size, default=None,
                        help="Resolution as WxH (e.g., 1280x720)")
    parser.add_argument("--max-poses", type=int, default=None, help="Tracking slots")
    parser.add_argument("--threshold", type=float, default=None, help="Landmark score threshold")
    parser.add_argument("--landmarks", type=str, default=None,
                        help=f"Comma-separated landmark names (default: {','.join(SUPPORTED_LANDMARKS)})")
    parser.add_argument("--policy", choices=sorted(PARTICLE_POLICIES), default=None,
                        help="Particle stability policy")
    parser.add_argument("--mode", choices=[m.value for m in RenderMode], default=None,
                        help="Link rendering mode")
    parser.add_argument("--opaque", type=int, default=None, help="All-pairs: opaque link count")
    parser.add_argument("--translucent", type=int, default=None,
                        help="All-pairs: translucent link count")
    parser.add_argument("--seed", type=int, default=None, help="Seed for link randomness")
    parser.add_argument("--skeleton", action="store_true", help="Start with the skeleton view on")
    parser.add_argument("--no-mirror", action="store_true", help="Do not mirror the image")
    parser.add_argument("--loop", action="store_true",
                        help="Loop video files when they reach the end")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        default="INFO", help="Logging level")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    source = args.source
    resolution = args.resolution

    overrides = {}
    if args.max_poses is not None:
        overrides["max_poses"] = args.max_poses
    if args.threshold is not None:
        overrides["score_threshold"] = args.threshold
    if args.landmarks:
        overrides["landmarks"] = tuple(n.strip() for n in args.landmarks.split(",") if n.strip())
    if args.policy:
        overrides["policy"] = get_policy(args.policy)
    if args.mode:
        overrides["render_mode"] = RenderMode(args.mode)
    if args.opaque is not None:
        overrides["num_opaque"] = args.opaque
    if args.translucent is not None:
        overrides["num_translucent"] = args.translucent
    if args.seed is not None:
        overrides["random_seed"] = args.seed
    if args.skeleton:
        overrides["show_skeleton"] = True

    try:
        config = replace(OverlayConfig.from_env(), **overrides)
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(1)

    print("\n" + "=" * 60)
    print("  PoseWeave Live Overlay")
    print("=" * 60)
    print(f"  Source: {source}")
    print(f"  Model: {args.model}")
    print(f"  Slots: {config.max_poses}  Landmarks: {len(config.landmarks)}")
    print(f"  Policy: {config.policy.name}  Mode: {config.render_mode.value}")
    print("=" * 60 + "\n")

    demo = PoseWeaveDemo(
        source=source,
        config=config,
        model_path=args.model,
        device=args.device,
        resolution=resolution,
        mirror=not args.no_mirror,
        loop=args.loop
    )
    demo.run()


if __name__ == "__main__":
    main()
