"""
PoseWeave Video Pipeline - Frame feed for the live overlay

- Background reader thread; the main loop only ever sees the newest frame
- Webcam index, stream URL or file path; files are paced and can loop
- Backdrop helpers (grayscale, mirror) and an FPS counter overlay
"""

import threading
import time
import logging
import platform
from collections import deque
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np


# Preferred camera backend per OS; anything else uses V4L2
CAMERA_BACKENDS = {
    "Windows": cv2.CAP_DSHOW,
    "Darwin": cv2.CAP_AVFOUNDATION,
}


def open_capture(source: int | str, resolution: Optional[Tuple[int, int]] = None) -> cv2.VideoCapture:
    """
    Open a cv2.VideoCapture for a camera index, URL or file.

    Camera indices try the platform backend first and fall back to the
    default one. The returned capture may still be closed; check isOpened().
    """
    if isinstance(source, int):
        backend = CAMERA_BACKENDS.get(platform.system(), cv2.CAP_V4L2)
        cap = cv2.VideoCapture(source, backend)
        if not cap.isOpened():
            cap = cv2.VideoCapture(source)
    else:
        cap = cv2.VideoCapture(source)

    if cap.isOpened():
        if resolution:
            width, height = resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
    return cap


@dataclass
class CaptureStats:
    """Reader counters."""
    frames: int = 0
    skipped: int = 0          # Read but replaced before the main loop took them
    fps: float = 0.0
    latency_ms: float = 0.0


class ThreadedVideoCapture:
    """
    Camera / stream reader on a daemon thread.

    Holds a single (frame, timestamp) slot. Reading latest_frame empties it,
    so the main loop never processes the same frame twice.

    Usage:
        with ThreadedVideoCapture(source=0) as feed:
            frame = feed.latest_frame
    """

    def __init__(self, source: int | str = 0, resolution: Optional[Tuple[int, int]] = None):
        self.source = source
        self.resolution = resolution
        self.logger = logging.getLogger(__name__)

        self._cap: Optional[cv2.VideoCapture] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._slot: Optional[Tuple[np.ndarray, float]] = None
        self._running = False

        self._frames = 0
        self._skipped = 0
        self._latency_ms = 0.0
        self._started_at = 0.0
        self.native_fps = 0.0

    @property
    def is_file(self) -> bool:
        return isinstance(self.source, str) and "://" not in self.source

    def _read_loop(self):
        while self._running:
            ok, frame = self._cap.read()
            if ok:
                self._publish(frame)
            elif self.is_file:
                self.logger.info("End of video file reached")
                self._running = False
            else:
                time.sleep(0.001)

    def _publish(self, frame: np.ndarray):
        with self._lock:
            if self._slot is not None:
                self._skipped += 1
            self._slot = (frame, time.perf_counter())
            self._frames += 1

    def start(self) -> bool:
        """Open the source and spawn the reader. False if the source won't open."""
        if self._running:
            return True

        self._cap = open_capture(self.source, self.resolution)
        if not self._cap.isOpened():
            self.logger.error(f"Failed to open video source: {self.source}")
            return False

        self.native_fps = self._cap.get(cv2.CAP_PROP_FPS) or 30.0
        self.logger.info(
            f"Video source {self.source!r} opened: "
            f"{int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x"
            f"{int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))} @ {self.native_fps:.1f}fps"
        )

        self._running = True
        self._started_at = time.perf_counter()
        self._thread = threading.Thread(target=self._read_loop, name="poseweave-capture", daemon=True)
        self._thread.start()
        return True

    def stop(self):
        self._running = False
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=1.0)
        self._thread = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self.logger.info("Video capture stopped")

    @property
    def latest_frame(self) -> Optional[np.ndarray]:
        """Newest unread BGR frame, or None if nothing new has arrived."""
        with self._lock:
            slot, self._slot = self._slot, None
        if slot is None:
            return None
        frame, captured_at = slot
        self._latency_ms = (time.perf_counter() - captured_at) * 1000
        return frame

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stats(self) -> CaptureStats:
        elapsed = time.perf_counter() - self._started_at if self._started_at else 0.0
        return CaptureStats(
            frames=self._frames,
            skipped=self._skipped,
            fps=self._frames / elapsed if elapsed > 0 else 0.0,
            latency_ms=self._latency_ms,
        )

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False


class VideoFileReader(ThreadedVideoCapture):
    """Video file feed paced at the file's frame rate, optionally looping."""

    def __init__(self, filepath: str, loop: bool = False, **kwargs):
        super().__init__(source=filepath, **kwargs)
        self.loop = loop

    def _read_loop(self):
        delay = 1.0 / self.native_fps if self.native_fps > 0 else 0.0
        while self._running:
            ok, frame = self._cap.read()
            if not ok:
                if not self.loop:
                    self.logger.info("End of video file reached")
                    self._running = False
                    break
                self._cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
                continue
            self._publish(frame)
            time.sleep(delay)


def grayscale_backdrop(frame: np.ndarray) -> np.ndarray:
    """Gray copy of a BGR frame, kept 3-channel so colored strokes show on it."""
    return cv2.cvtColor(cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY), cv2.COLOR_GRAY2BGR)


def mirror(frame: np.ndarray) -> np.ndarray:
    """Selfie view (horizontal flip)."""
    return cv2.flip(frame, 1)


class PerformanceOverlay:
    """Rolling FPS readout plus one line of extra text, top-left."""

    GOOD_FPS = 30
    OK_FPS = 20

    def __init__(self, history_size: int = 30):
        self._intervals = deque(maxlen=history_size)
        self._last_tick = time.perf_counter()

    def update(self):
        now = time.perf_counter()
        self._intervals.append(now - self._last_tick)
        self._last_tick = now

    @property
    def fps(self) -> float:
        total = sum(self._intervals)
        return len(self._intervals) / total if total > 0 else 0.0

    def draw(self, frame: np.ndarray, extra_info: str = "") -> np.ndarray:
        fps = self.fps
        if fps >= self.GOOD_FPS:
            color = (0, 255, 0)
        elif fps >= self.OK_FPS:
            color = (0, 255, 255)
        else:
            color = (0, 0, 255)

        cv2.putText(frame, f"FPS: {fps:.1f}", (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.8, color, 2, cv2.LINE_AA)
        if extra_info:
            cv2.putText(frame, extra_info, (10, 55),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, (200, 200, 200), 1, cv2.LINE_AA)
        return frame
