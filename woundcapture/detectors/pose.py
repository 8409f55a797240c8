"""YOLO pose estimator returning COCO-17 keypoints."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from woundcapture.detectors.yolo_objects import load_yolo
from woundcapture.types import Frame, Keypoint

LOGGER = logging.getLogger("woundcapture.detectors.pose")

COCO_KEYPOINTS = (
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


class YOLOPoseEstimator:
    """Single-person pose estimation via an Ultralytics pose model."""

    def __init__(
        self,
        weights: str = "yolov8n-pose.pt",
        device: Optional[str] = None,
        conf_thres: float = 0.25,
        max_poses: int = 1,
    ) -> None:
        self.model, self.device = load_yolo(weights, device)
        self.conf_thres = conf_thres
        self.max_poses = max_poses
        LOGGER.info(
            "Loaded YOLO pose estimator weights=%s device=%s conf=%.2f",
            weights,
            self.device,
            conf_thres,
        )

    def estimate(self, frame: Frame) -> List[List[Keypoint]]:
        """Return keypoint lists ordered by person confidence."""
        results = self.model.predict(source=frame.pixels, conf=self.conf_thres, verbose=False)
        poses: List[tuple] = []
        for result in results:
            keypoints = getattr(result, "keypoints", None)
            if keypoints is None or keypoints.data is None:
                continue
            data = keypoints.data.cpu().numpy()
            if data.ndim != 3 or data.shape[0] == 0:
                continue
            scores = (
                result.boxes.conf.cpu().numpy()
                if result.boxes is not None and result.boxes.conf is not None
                else np.ones(data.shape[0], dtype=np.float32)
            )
            for person, person_score in zip(data, scores):
                points = [
                    Keypoint(
                        x=float(row[0]),
                        y=float(row[1]),
                        score=float(row[2]) if row.shape[0] > 2 else 1.0,
                        name=COCO_KEYPOINTS[idx] if idx < len(COCO_KEYPOINTS) else str(idx),
                    )
                    for idx, row in enumerate(person)
                ]
                poses.append((float(person_score), points))
        poses.sort(key=lambda item: item[0], reverse=True)
        return [points for _, points in poses[: self.max_poses]]
