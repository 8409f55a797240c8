"""YOLO-based object detector wrapper returning direct boxes."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Tuple

from woundcapture.errors import DetectorLoadError
from woundcapture.types import BoundingBox, DetectionCandidate, Frame

LOGGER = logging.getLogger("woundcapture.detectors.objects")


def load_yolo(weights: str, device: Optional[str] = None) -> Tuple[Any, str]:
    """Load Ultralytics weights and move them to the best available device."""
    try:
        from ultralytics import YOLO
    except ImportError as exc:  # pragma: no cover - import guard
        raise DetectorLoadError(
            "ultralytics is required for YOLO detectors. "
            "Install it via `pip install ultralytics`."
        ) from exc

    try:
        model = YOLO(weights)
    except Exception as exc:
        raise DetectorLoadError(f"Unable to load YOLO weights {weights!r}: {exc}") from exc

    resolved_device = device
    if resolved_device is None:
        try:
            import torch  # type: ignore

            if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
                resolved_device = "mps"
            elif torch.cuda.is_available():
                resolved_device = "cuda"
        except Exception:  # pragma: no cover - optional dependency
            resolved_device = None
    if resolved_device is not None:
        try:
            model.to(resolved_device)
        except Exception as exc:  # pragma: no cover - device detection
            LOGGER.warning(
                "YOLO model could not use device=%s (%s); falling back to auto.",
                resolved_device,
                exc,
            )
            resolved_device = None
    return model, resolved_device or "auto"


class YOLOObjectDetector:
    """Thin wrapper combining Ultralytics YOLO inference with label mapping."""

    def __init__(
        self,
        weights: str,
        device: Optional[str] = None,
        conf_thres: float = 0.25,
        iou_thres: float = 0.5,
        class_filter: Iterable[str] = (),
    ) -> None:
        self.model, self.device = load_yolo(weights, device)
        self.conf_thres = conf_thres
        self.iou_thres = iou_thres
        self.class_filter = frozenset(class_filter)
        LOGGER.info(
            "Loaded YOLO object detector weights=%s device=%s conf=%.2f classes=%s",
            weights,
            self.device,
            conf_thres,
            sorted(self.class_filter) or "all",
        )

    def detect(self, frame: Frame) -> List[DetectionCandidate]:
        """Run inference on a single frame."""
        results = self.model.predict(
            source=frame.pixels,
            conf=self.conf_thres,
            iou=self.iou_thres,
            verbose=False,
        )
        candidates: List[DetectionCandidate] = []
        for result in results:
            if result.boxes is None:
                continue
            names = getattr(result, "names", None) or {}
            for box in result.boxes:
                cls = int(box.cls.item()) if box.cls is not None else -1
                label = str(names.get(cls, cls))
                if self.class_filter and label not in self.class_filter:
                    continue
                score = float(box.conf.item()) if box.conf is not None else 0.0
                xyxy = box.xyxy.cpu().numpy().flatten()
                bbox = BoundingBox.from_xyxy(tuple(float(v) for v in xyxy[:4]))  # type: ignore[arg-type]
                candidates.append(
                    DetectionCandidate(
                        bbox=bbox.clip(frame.width, frame.height),
                        label=label,
                        confidence=score,
                    )
                )
        return candidates
