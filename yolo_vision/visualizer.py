"""
Visualization for the YOLO vision pipeline.

Responsibility:
    Draw detections, segmentation masks, and pose skeletons onto a
    frame. This is a pure rendering module — it produces an annotated
    copy of the frame and performs no I/O. Results are already in
    original-image pixels, so no rescaling is needed.

Non-goals:
    - No file writing or detection logic.
"""

from typing import List, Sequence, Tuple

import cv2
import numpy as np

from yolo_vision.config import VisualizationConfig
from yolo_vision.constants import DEFAULT_COLORS, POSE_SKELETON
from yolo_vision.results import Detection, Pose, Segmentation

# Hard-coded rendering constants (cosmetic internals, not user-facing)
_FONT = cv2.FONT_HERSHEY_SIMPLEX
_FONT_SCALE = 0.5
_FONT_THICKNESS = 1
_LABEL_PADDING = 4
_KEYPOINT_RADIUS = 4
_WINDOW_NAME = "YOLO Vision"


def color_for(index: int, colors: Sequence[Tuple[int, int, int]] = DEFAULT_COLORS) -> Tuple[int, int, int]:
    """Palette color for a class (or pose) index."""
    return colors[index % len(colors)]


def _label_text(det: Detection, config: VisualizationConfig) -> str:
    if config.show_confidence:
        return f"{det.class_name} {det.score * 100:.1f}%"
    return det.class_name


def _draw_box(annotated: np.ndarray, det: Detection, color, config: VisualizationConfig) -> None:
    x1, y1, x2, y2 = (int(round(v)) for v in det.as_xyxy())
    cv2.rectangle(annotated, (x1, y1), (x2, y2), color=color, thickness=config.thickness)

    if not config.show_labels:
        return

    label = _label_text(det, config)
    (text_w, text_h), _ = cv2.getTextSize(label, _FONT, _FONT_SCALE, _FONT_THICKNESS)

    # Above the box, or below if too close to top
    label_y = y1 - _LABEL_PADDING
    if label_y - text_h - _LABEL_PADDING < 0:
        label_y = y2 + text_h + _LABEL_PADDING

    cv2.rectangle(
        annotated,
        (x1, label_y - text_h - _LABEL_PADDING),
        (x1 + text_w + _LABEL_PADDING, label_y + _LABEL_PADDING),
        color=color,
        thickness=cv2.FILLED,
    )
    cv2.putText(
        annotated,
        label,
        (x1 + _LABEL_PADDING // 2, label_y),
        _FONT,
        _FONT_SCALE,
        (255, 255, 255),
        _FONT_THICKNESS,
        cv2.LINE_AA,
    )


def draw_detections(
    frame: np.ndarray,
    detections: List[Detection],
    config: VisualizationConfig,
) -> np.ndarray:
    """Draw bounding boxes and labels. Returns a new annotated frame."""
    annotated = frame.copy()
    for det in detections:
        _draw_box(annotated, det, color_for(det.class_index), config)
    return annotated


def blend_mask(frame: np.ndarray, mask: np.ndarray, opacity: float) -> np.ndarray:
    """Alpha-blend an RGBA mask onto a BGR frame in place and return it.

    The mask alpha channel is scaled by `opacity`. Masks of a different
    size are resized to the frame first.
    """
    h, w = frame.shape[:2]
    if mask.shape[:2] != (h, w):
        mask = cv2.resize(mask, (w, h), interpolation=cv2.INTER_NEAREST)

    alpha = (mask[..., 3:4].astype(np.float32) / 255.0) * opacity
    if not np.any(alpha):
        return frame

    overlay_bgr = mask[..., 2::-1].astype(np.float32)  # RGBA → BGR
    blended = frame.astype(np.float32) * (1.0 - alpha) + overlay_bgr * alpha
    frame[...] = np.clip(blended, 0, 255).astype(frame.dtype)
    return frame


def draw_segmentations(
    frame: np.ndarray,
    segmentations: List[Segmentation],
    config: VisualizationConfig,
) -> np.ndarray:
    """Blend masks, then draw boxes and labels. Returns a new annotated frame."""
    annotated = frame.copy()
    for seg in segmentations:
        if seg.mask is not None:
            blend_mask(annotated, seg.mask, config.mask_opacity)
        _draw_box(annotated, seg, color_for(seg.class_index), config)
    return annotated


def draw_poses(
    frame: np.ndarray,
    poses: List[Pose],
    config: VisualizationConfig,
) -> np.ndarray:
    """Draw boxes, skeleton edges, and keypoints. Returns a new annotated frame.

    Edges and points are drawn only for keypoints whose confidence is
    above config.keypoint_threshold. Each pose gets its own color.
    """
    annotated = frame.copy()

    for pose_index, pose in enumerate(poses):
        color = color_for(pose_index)
        _draw_box(annotated, pose, color, config)

        kps = pose.keypoints
        for start, end in POSE_SKELETON:
            if start - 1 >= len(kps) or end - 1 >= len(kps):
                continue
            a, b = kps[start - 1], kps[end - 1]
            if a.confidence > config.keypoint_threshold and b.confidence > config.keypoint_threshold:
                cv2.line(
                    annotated,
                    (int(round(a.x)), int(round(a.y))),
                    (int(round(b.x)), int(round(b.y))),
                    color,
                    2,
                    cv2.LINE_AA,
                )

        for kp in kps:
            if kp.confidence > config.keypoint_threshold:
                cv2.circle(
                    annotated,
                    (int(round(kp.x)), int(round(kp.y))),
                    _KEYPOINT_RADIUS,
                    color,
                    thickness=cv2.FILLED,
                )

    return annotated


def draw_results(
    frame: np.ndarray,
    results: List[Detection],
    model_type: str,
    config: VisualizationConfig,
) -> np.ndarray:
    """Dispatch to the drawer matching model_type."""
    if model_type == "segmentation":
        return draw_segmentations(frame, results, config)
    if model_type == "pose":
        return draw_poses(frame, results, config)
    return draw_detections(frame, results, config)


def show_frame(
    frame: np.ndarray,
    results: List[Detection],
    model_type: str,
    config: VisualizationConfig,
) -> int:
    """Show annotated frame in a window and return key press.

    Returns:
        The key code pressed during waitKey, masked to 8 bits (255 if no key).
    """
    annotated = draw_results(frame, results, model_type, config)
    cv2.imshow(_WINDOW_NAME, annotated)
    return cv2.waitKey(1) & 0xFF
