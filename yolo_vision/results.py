"""
Result data transfer objects.

This module defines the frozen result types produced by the
postprocessor: Detection, Segmentation, Pose (with Keypoint), and the
InferenceResult wrapper returned by Detector.predict(). They carry data
only; geometry decoding lives in the decoder and geometry modules.

Non-goals:
    - No rendering logic.
    - No file I/O.
    - No cross-frame identity (results are created fresh per call).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

BBox = Tuple[float, float, float, float]


@dataclass(frozen=True, slots=True)
class Detection:
    """A single detected object.

    Attributes:
        bbox: (x, y, width, height) in original-image pixels, top-left corner form.
        score: Confidence score in (0.0, 1.0].
        class_name: Resolved class label, or "unknown" for out-of-table ids.
        class_index: Integer class id as emitted by the network.
    """

    bbox: BBox
    score: float
    class_name: str
    class_index: int

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        x, y, w, h = self.bbox
        return {
            "x": round(x, 2),
            "y": round(y, 2),
            "width": round(w, 2),
            "height": round(h, 2),
            "score": round(self.score, 4),
            "class": self.class_name,
            "class_index": self.class_index,
        }

    @property
    def width(self) -> float:
        return self.bbox[2]

    @property
    def height(self) -> float:
        return self.bbox[3]

    @property
    def area(self) -> float:
        return self.bbox[2] * self.bbox[3]

    def as_xyxy(self) -> BBox:
        x, y, w, h = self.bbox
        return x, y, x + w, y + h


@dataclass(frozen=True, slots=True)
class Segmentation(Detection):
    """A detection with a per-pixel RGBA mask sized to the original image.

    The mask is a uint8 array of shape (H, W, 4). It is compared by
    identity, not by value.
    """

    mask: np.ndarray = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict:
        """Return a plain dict; the mask is summarized by its covered pixel count."""
        data = Detection.to_dict(self)
        data["mask_pixels"] = int(np.count_nonzero(self.mask[..., 3])) if self.mask is not None else 0
        return data


@dataclass(frozen=True, slots=True)
class Keypoint:
    """A single pose keypoint in original-image coordinates."""

    x: float
    y: float
    confidence: float
    name: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "x": round(self.x, 2),
            "y": round(self.y, 2),
            "confidence": round(self.confidence, 4),
        }


@dataclass(frozen=True, slots=True)
class Pose(Detection):
    """A person detection with an ordered sequence of 17 keypoints."""

    keypoints: Tuple[Keypoint, ...] = ()

    def to_dict(self) -> dict:
        data = Detection.to_dict(self)
        data["keypoints"] = [kp.to_dict() for kp in self.keypoints]
        return data


@dataclass(frozen=True)
class InferenceResult:
    """Output of one Detector.predict() call.

    Exactly one of detections / segmentations / poses is populated,
    according to model_type. Timings are in milliseconds.
    """

    model_type: str
    detections: Optional[List[Detection]] = None
    segmentations: Optional[List[Segmentation]] = None
    poses: Optional[List[Pose]] = None
    preprocess_ms: float = 0.0
    inference_ms: float = 0.0
    postprocess_ms: float = 0.0

    @property
    def results(self) -> List[Detection]:
        """The populated result list, whatever the model type."""
        if self.model_type == "segmentation":
            return self.segmentations or []
        if self.model_type == "pose":
            return self.poses or []
        return self.detections or []
