"""
Tests for the rendering module.
"""

import numpy as np

from yolo_vision.config import VisualizationConfig
from yolo_vision.constants import DEFAULT_COLORS, POSE_KEYPOINTS
from yolo_vision.masks import build_box_mask
from yolo_vision.results import Detection, Keypoint, Pose, Segmentation
from yolo_vision.visualizer import blend_mask, color_for, draw_poses, draw_results


def _blank(h: int = 200, w: int = 200) -> np.ndarray:
    return np.zeros((h, w, 3), dtype=np.uint8)


def test_color_for_wraps_palette():
    assert color_for(0) == DEFAULT_COLORS[0]
    assert color_for(len(DEFAULT_COLORS) + 3) == DEFAULT_COLORS[3]


def test_draw_detections_returns_copy():
    """Drawing never mutates the input frame."""
    frame = _blank()
    det = Detection((50.0, 60.0, 80.0, 70.0), 0.9, "person", 0)

    annotated = draw_results(frame, [det], "detection", VisualizationConfig(show_labels=False))

    assert not frame.any()
    assert annotated.shape == frame.shape
    assert tuple(annotated[60, 90]) == DEFAULT_COLORS[0]   # top edge of the box


def test_blend_mask_only_touches_masked_pixels():
    """Translucent red lands inside the mask; the rest is untouched."""
    frame = np.full((100, 100, 3), 100, dtype=np.uint8)
    mask = build_box_mask((10, 10, 20, 20), width=100, height=100)

    blend_mask(frame, mask, opacity=1.0)

    alpha = 128 / 255
    b, g, r = frame[15, 15]
    assert r == int(100 * (1 - alpha) + 255 * alpha)
    assert b == g == int(100 * (1 - alpha))
    assert tuple(frame[50, 50]) == (100, 100, 100)


def test_blend_mask_resizes_to_frame():
    """A mask of another size is stretched to the frame."""
    frame = _blank(100, 100)
    mask = build_box_mask((0, 0, 50, 50), width=50, height=50)

    blend_mask(frame, mask, opacity=1.0)

    assert frame[90, 90, 2] > 0


def test_draw_segmentations():
    frame = _blank()
    mask = build_box_mask((20, 20, 60, 60), width=200, height=200)
    seg = Segmentation((20.0, 20.0, 60.0, 60.0), 0.8, "dog", 16, mask=mask)

    annotated = draw_results(frame, [seg], "segmentation", VisualizationConfig(show_labels=False))

    assert annotated[50, 50, 2] > 0
    assert not annotated[150, 150].any()


def test_draw_poses_skips_low_confidence_keypoints():
    """Only keypoints above the threshold are drawn."""
    keypoints = tuple(
        Keypoint(100.0 + i, 100.0, 0.9 if i == 0 else 0.1, name)
        for i, name in enumerate(POSE_KEYPOINTS)
    )
    pose = Pose((0.0, 0.0, 10.0, 10.0), 0.9, "person", 0, keypoints=keypoints)
    config = VisualizationConfig(show_labels=False, keypoint_threshold=0.5)

    annotated = draw_poses(_blank(), [pose], config)

    assert annotated[100, 100].any()
    assert not annotated[100, 116].any()
