"""
Candidate decoding for YOLO11 detection, segmentation, and pose heads.

Responsibility:
    Walk a channel-major OutputTensor and emit the anchors that survive
    the decode-stage filters as index-aligned arrays: boxes in
    original-image space, scores, class ids, and the task payload
    (mask coefficients or keypoints).

Filters, applied in order:
    1. best class score (person confidence for pose) >= confidence_threshold
    2. raw model-space width > 0 and height > 0
    3. mapped width >= min_box_size and mapped height >= min_box_size

Hard-coded:
    - Channel layout: [cx, cy, w, h, ...] with the task channels following
      the four box channels. See constants.py for the counts.
    - Class selection uses a strict ">" scan starting at score 0 / class 0,
      so the lowest class index wins ties and all-non-positive anchors
      report class 0 with score 0.

Non-goals:
    - No suppression (see nms.py) and no result assembly.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from yolo_vision.constants import (
    BOX_CHANNELS,
    KEYPOINT_VALUES,
    NUM_CLASSES,
    NUM_KEYPOINTS,
    NUM_MASK_COEFFICIENTS,
)
from yolo_vision.geometry import GeometryContext, map_boxes_to_original, map_points_to_original
from yolo_vision.tensor import OutputTensor

logger = logging.getLogger(__name__)

DEFAULT_MIN_BOX_SIZE = 20.0


@dataclass(frozen=True)
class DecodedCandidates:
    """Index-aligned decode output; row i of every array is the same candidate.

    Attributes:
        boxes: (M, 4) xywh boxes in original-image pixels.
        scores: (M,) best class score or person confidence.
        class_ids: (M,) best class index (0 for pose).
        anchor_indices: (M,) source anchor index in the tensor.
        mask_coefficients: (M, K) raw coefficients, segmentation only.
        keypoints: (M, 17, 3) [x, y, confidence] in original space, pose only.
    """

    boxes: np.ndarray
    scores: np.ndarray
    class_ids: np.ndarray
    anchor_indices: np.ndarray
    mask_coefficients: Optional[np.ndarray] = None
    keypoints: Optional[np.ndarray] = None

    def __len__(self) -> int:
        return int(self.scores.shape[0])


def best_class(tensor: OutputTensor, num_classes: int) -> Tuple[np.ndarray, np.ndarray]:
    """Return (scores, class_ids) of the best class per anchor."""
    if num_classes <= 0:
        return (
            np.zeros(tensor.anchors, dtype=np.float32),
            np.zeros(tensor.anchors, dtype=np.int64),
        )

    class_scores = tensor.channels_slice(BOX_CHANNELS, num_classes)  # (C, N)
    class_ids = np.argmax(class_scores, axis=0)  # first maximum wins
    scores = class_scores[class_ids, np.arange(tensor.anchors)]

    positive = scores > 0
    return (
        np.where(positive, scores, np.float32(0.0)),
        np.where(positive, class_ids, 0).astype(np.int64),
    )


def _select_boxes(
    tensor: OutputTensor,
    context: GeometryContext,
    scores: np.ndarray,
    confidence_threshold: float,
    min_box_size: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """Apply the three decode filters. Returns (anchor_indices, boxes_xywh)."""
    cx = tensor.channel(0)
    cy = tensor.channel(1)
    w = tensor.channel(2)
    h = tensor.channel(3)

    passing = (scores >= confidence_threshold) & (w > 0) & (h > 0)
    idx = np.flatnonzero(passing)

    boxes = map_boxes_to_original(cx[idx], cy[idx], w[idx], h[idx], context)
    large_enough = (boxes[:, 2] >= min_box_size) & (boxes[:, 3] >= min_box_size)

    logger.debug(
        "Decode: %d/%d anchors passed score/shape filters, %d passed min size %.1f",
        idx.size, tensor.anchors, int(np.count_nonzero(large_enough)), min_box_size,
    )
    return idx[large_enough], boxes[large_enough]


def decode_detections(
    tensor: OutputTensor,
    context: GeometryContext,
    confidence_threshold: float,
    min_box_size: float = DEFAULT_MIN_BOX_SIZE,
    num_classes: int = NUM_CLASSES,
) -> DecodedCandidates:
    """Decode a [4 + C, N] detection head."""
    all_scores, all_ids = best_class(tensor, num_classes)
    idx, boxes = _select_boxes(tensor, context, all_scores, confidence_threshold, min_box_size)

    return DecodedCandidates(
        boxes=boxes,
        scores=all_scores[idx].astype(np.float64),
        class_ids=all_ids[idx],
        anchor_indices=idx,
    )


def decode_segmentations(
    tensor: OutputTensor,
    context: GeometryContext,
    confidence_threshold: float,
    min_box_size: float = DEFAULT_MIN_BOX_SIZE,
    num_classes: int = NUM_CLASSES,
    num_mask_coefficients: int = NUM_MASK_COEFFICIENTS,
) -> DecodedCandidates:
    """Decode a [4 + C + K, N] segmentation head; coefficients are read verbatim."""
    all_scores, all_ids = best_class(tensor, num_classes)
    idx, boxes = _select_boxes(tensor, context, all_scores, confidence_threshold, min_box_size)

    coefficients = tensor.channels_slice(BOX_CHANNELS + num_classes, num_mask_coefficients)

    return DecodedCandidates(
        boxes=boxes,
        scores=all_scores[idx].astype(np.float64),
        class_ids=all_ids[idx],
        anchor_indices=idx,
        mask_coefficients=coefficients[:, idx].T.astype(np.float64),
    )


def decode_poses(
    tensor: OutputTensor,
    context: GeometryContext,
    confidence_threshold: float,
    min_box_size: float = DEFAULT_MIN_BOX_SIZE,
    num_keypoints: int = NUM_KEYPOINTS,
) -> DecodedCandidates:
    """Decode a [5 + 17 * 3, N] pose head.

    Channel 4 is the person confidence; each keypoint j occupies channels
    5 + 3j (x), 6 + 3j (y), and 7 + 3j (confidence).
    """
    person_conf = tensor.channel(BOX_CHANNELS)
    idx, boxes = _select_boxes(tensor, context, person_conf, confidence_threshold, min_box_size)

    keypoints = np.zeros((idx.size, num_keypoints, KEYPOINT_VALUES), dtype=np.float64)
    base = BOX_CHANNELS + 1
    for j in range(num_keypoints):
        kx = tensor.channel(base + j * KEYPOINT_VALUES)[idx]
        ky = tensor.channel(base + j * KEYPOINT_VALUES + 1)[idx]
        kconf = tensor.channel(base + j * KEYPOINT_VALUES + 2)[idx]
        keypoints[:, j, 0], keypoints[:, j, 1] = map_points_to_original(kx, ky, context)
        keypoints[:, j, 2] = kconf

    return DecodedCandidates(
        boxes=boxes,
        scores=person_conf[idx].astype(np.float64),
        class_ids=np.zeros(idx.size, dtype=np.int64),
        anchor_indices=idx,
        keypoints=keypoints,
    )
