"""
Tests for candidate decoding.
"""

import numpy as np
import pytest

from yolo_vision.decoder import best_class, decode_detections, decode_poses, decode_segmentations
from yolo_vision.geometry import GeometryContext
from yolo_vision.tensor import OutputTensor

_IDENTITY = GeometryContext(640, 640, 1.0, 1.0)


def _raw(channels: int, anchors: int) -> np.ndarray:
    return np.zeros((channels, anchors), dtype=np.float32)


def _set_box(raw: np.ndarray, anchor: int, cx, cy, w, h) -> None:
    raw[0:4, anchor] = (cx, cy, w, h)


def test_best_class_first_maximum_wins():
    """Ties go to the lowest class index."""
    raw = _raw(4 + 3, 2)
    raw[4:, 0] = (0.2, 0.7, 0.7)
    raw[4:, 1] = (0.6, 0.1, 0.6)

    scores, ids = best_class(OutputTensor.from_array(raw), 3)

    assert ids.tolist() == [1, 0]
    assert scores.tolist() == pytest.approx([0.7, 0.6])


def test_best_class_non_positive_scores():
    """All-zero or negative class scores report class 0 with score 0."""
    raw = _raw(4 + 3, 2)
    raw[4:, 1] = (-0.5, -0.1, -0.3)

    scores, ids = best_class(OutputTensor.from_array(raw), 3)

    assert ids.tolist() == [0, 0]
    assert scores.tolist() == [0.0, 0.0]


def test_decode_filters_in_order():
    """Low score, non-positive size, and small mapped boxes are all dropped."""
    raw = _raw(4 + 2, 5)
    _set_box(raw, 0, 100, 100, 50, 50)
    raw[4, 0] = 0.9                      # kept
    _set_box(raw, 1, 200, 200, 50, 50)
    raw[5, 1] = 0.3                      # below threshold
    _set_box(raw, 2, 300, 300, 0, 50)
    raw[4, 2] = 0.9                      # zero width
    _set_box(raw, 3, 400, 400, 19, 50)
    raw[4, 3] = 0.9                      # narrower than 20 px
    _set_box(raw, 4, 500, 500, 30, 40)
    raw[5, 4] = 0.6                      # kept, class 1

    decoded = decode_detections(OutputTensor.from_array(raw), _IDENTITY, 0.5, num_classes=2)

    assert len(decoded) == 2
    assert decoded.anchor_indices.tolist() == [0, 4]
    assert decoded.class_ids.tolist() == [0, 1]
    assert decoded.scores.tolist() == pytest.approx([0.9, 0.6])
    assert decoded.boxes[0].tolist() == pytest.approx([75, 75, 50, 50])
    assert decoded.boxes[1].tolist() == pytest.approx([485, 480, 30, 40])


def test_min_box_size_is_configurable():
    """Lowering min_box_size admits smaller boxes."""
    raw = _raw(5, 1)
    _set_box(raw, 0, 100, 100, 10, 10)
    raw[4, 0] = 0.9
    tensor = OutputTensor.from_array(raw)

    assert len(decode_detections(tensor, _IDENTITY, 0.5, num_classes=1)) == 0
    assert len(decode_detections(tensor, _IDENTITY, 0.5, min_box_size=5, num_classes=1)) == 1


def test_min_box_size_applies_after_mapping():
    """The size floor is measured in original pixels, not model pixels."""
    raw = _raw(5, 1)
    _set_box(raw, 0, 320, 320, 15, 15)   # 15 px in the model, 30 px in the original
    raw[4, 0] = 0.9
    ctx = GeometryContext(1280, 1280, 0.5, 0.5)

    decoded = decode_detections(OutputTensor.from_array(raw), ctx, 0.5, num_classes=1)

    assert len(decoded) == 1
    assert decoded.boxes[0].tolist() == pytest.approx([625, 625, 30, 30])


def test_segmentation_coefficients_verbatim():
    """Mask coefficients are copied without activation."""
    num_classes, k = 2, 3
    raw = _raw(4 + num_classes + k, 2)
    _set_box(raw, 1, 100, 100, 40, 40)
    raw[4, 1] = 0.8
    raw[4 + num_classes:, 1] = (-2.5, 0.0, 7.25)

    decoded = decode_segmentations(
        OutputTensor.from_array(raw), _IDENTITY, 0.5,
        num_classes=num_classes, num_mask_coefficients=k,
    )

    assert decoded.mask_coefficients.shape == (1, 3)
    assert decoded.mask_coefficients[0].tolist() == [-2.5, 0.0, 7.25]


def test_pose_keypoints_mapped_to_original():
    """Keypoints go through the same letterbox mapping as boxes."""
    raw = _raw(5 + 17 * 3, 3)
    _set_box(raw, 2, 320, 320, 100, 200)
    raw[4, 2] = 0.75
    for j in range(17):
        raw[5 + j * 3, 2] = 300 + j
        raw[6 + j * 3, 2] = 280 + j
        raw[7 + j * 3, 2] = j / 17
    ctx = GeometryContext(1280, 960, 0.5, 0.5, 0.0, 80.0)

    decoded = decode_poses(OutputTensor.from_array(raw), ctx, 0.5)

    assert len(decoded) == 1
    assert decoded.class_ids.tolist() == [0]
    assert decoded.scores[0] == pytest.approx(0.75)
    assert decoded.keypoints.shape == (1, 17, 3)
    assert decoded.keypoints[0, 0].tolist() == pytest.approx([600.0, 400.0, 0.0])
    assert decoded.keypoints[0, 16].tolist() == pytest.approx([632.0, 432.0, 16 / 17])


def test_pose_uses_person_confidence():
    """Pose filtering uses channel 4, not a class scan."""
    raw = _raw(5 + 17 * 3, 1)
    _set_box(raw, 0, 320, 320, 100, 100)
    raw[4, 0] = 0.4
    raw[7, 0] = 0.99  # keypoint confidence must not count as a score

    decoded = decode_poses(OutputTensor.from_array(raw), _IDENTITY, 0.5)

    assert len(decoded) == 0
