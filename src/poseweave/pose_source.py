"""
Pose sources: adapters from a detection model to per-frame Pose records.

Implementations take a BGR frame and return the poses found in it, each with
a stable identity for as long as the underlying tracker keeps it.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

import numpy as np

from .pose_types import Landmark, Pose
from .skeleton import COCO17_NAMES


class PoseSource(ABC):
    """Detection model adapter interface."""

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def infer(self, frame_bgr: np.ndarray) -> List[Pose]: ...

    def close(self) -> None:
        pass


class UltralyticsPoseSource(PoseSource):
    """
    YOLO pose model with persistent tracking.

    Tracker IDs become pose identities; keypoints are named with the COCO-17
    order the YOLO pose models emit. Poses without a tracker ID (tracker not
    yet confirmed) are skipped.
    """

    def __init__(
        self,
        model_path: str = "yolo11n-pose.pt",
        device: str = "",
        conf: float = 0.25,
        tracker: str = "bytetrack.yaml",
    ):
        self.logger = logging.getLogger("UltralyticsPoseSource")
        try:
            from ultralytics import YOLO
        except ImportError as e:
            raise RuntimeError(
                "ultralytics is not installed. Install pose deps with: pip install 'poseweave[pose]'"
            ) from e

        try:
            self._model = YOLO(model_path)
            if device:  # 'cpu', 'mps', '0' ...
                self._model.to(device)
        except Exception as e:
            raise RuntimeError(f"Failed to load pose model '{model_path}': {e}") from e

        self.model_path = model_path
        self.conf = conf
        self.tracker = tracker
        self.logger.info(f"Pose model '{model_path}' loaded")

    def name(self) -> str:
        return "ultralytics_pose"

    def infer(self, frame_bgr: np.ndarray) -> List[Pose]:
        results = self._model.track(
            frame_bgr, persist=True, conf=self.conf, tracker=self.tracker, verbose=False
        )
        if not results:
            return []
        result = results[0]
        if result.keypoints is None or result.boxes is None or result.boxes.id is None:
            return []

        ids = result.boxes.id.int().cpu().numpy()
        xy = result.keypoints.xy.cpu().numpy()
        if result.keypoints.conf is not None:
            scores = result.keypoints.conf.cpu().numpy()
        else:
            scores = np.ones(xy.shape[:2], dtype=np.float32)

        poses = []
        for track_id, points, point_scores in zip(ids, xy, scores):
            landmarks = tuple(
                Landmark(name, float(x), float(y), float(s))
                for name, (x, y), s in zip(COCO17_NAMES, points, point_scores)
            )
            poses.append(Pose(identity=int(track_id), landmarks=landmarks))
        return poses
