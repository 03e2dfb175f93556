"""
Segmentation mask synthesis.

Responsibility:
    Produce an RGBA overlay sized to the original image for one
    segmentation result.

Two modes:
    - box: fill every pixel inside the bounding box with MASK_COLOR and
      leave the rest fully transparent. This is the default and does not
      need the prototype output.
    - prototype: combine the candidate's mask coefficients with the
      prototype maps (sigmoid of the dot product), undo the letterbox,
      crop to the bounding box, and threshold at 0.5.

Non-goals:
    - No drawing onto frames (see visualizer.py).
"""

from typing import Sequence, Tuple

import cv2
import numpy as np

from yolo_vision.constants import MASK_COLOR
from yolo_vision.geometry import GeometryContext

MASK_MODES = ("box", "prototype")
_MASK_THRESHOLD = 0.5


def _box_region(bbox: Sequence[float], width: int, height: int) -> np.ndarray:
    """Boolean (H, W) array of pixels with x <= col < x + w and y <= row < y + h."""
    x, y, w, h = bbox
    cols = np.arange(width)
    rows = np.arange(height)
    inside_x = (cols >= x) & (cols < x + w)
    inside_y = (rows >= y) & (rows < y + h)
    return inside_y[:, None] & inside_x[None, :]


def _paint(region: np.ndarray, color: Tuple[int, int, int, int]) -> np.ndarray:
    mask = np.zeros(region.shape + (4,), dtype=np.uint8)
    mask[region] = color
    return mask


def build_box_mask(
    bbox: Sequence[float],
    width: int,
    height: int,
    color: Tuple[int, int, int, int] = MASK_COLOR,
) -> np.ndarray:
    """Rectangular RGBA mask of shape (height, width, 4) covering `bbox`."""
    return _paint(_box_region(bbox, width, height), color)


def normalize_prototypes(protos: np.ndarray) -> np.ndarray:
    """Accept (1, K, mh, mw) or (K, mh, mw) prototypes and return (K, mh, mw) float32."""
    arr = np.asarray(protos, dtype=np.float32)
    if arr.ndim == 4:
        if arr.shape[0] != 1:
            raise ValueError(f"Batch > 1 is not supported for prototypes (got shape {arr.shape}).")
        arr = arr[0]
    if arr.ndim != 3:
        raise ValueError(f"Prototype masks must be (K, H, W), got shape {arr.shape}.")
    return arr


def _sigmoid(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-np.clip(x, -50.0, 50.0)))


def build_prototype_mask(
    coefficients: np.ndarray,
    protos: np.ndarray,
    bbox: Sequence[float],
    context: GeometryContext,
    color: Tuple[int, int, int, int] = MASK_COLOR,
) -> np.ndarray:
    """Decode one instance mask from prototypes and return an RGBA overlay.

    Args:
        coefficients: (K,) mask coefficients of the candidate.
        protos: (K, mh, mw) prototype maps (see normalize_prototypes).
        bbox: (x, y, w, h) of the detection in original-image pixels.
        context: Geometry used to fit the frame into the model input.

    Raises:
        ValueError: If the coefficient count does not match the prototypes.
    """
    k, mh, mw = protos.shape
    coefficients = np.asarray(coefficients, dtype=np.float32).reshape(-1)
    if coefficients.size != k:
        raise ValueError(
            f"Got {coefficients.size} mask coefficients for {k} prototype maps."
        )

    logits = (coefficients @ protos.reshape(k, -1)).reshape(mh, mw)
    probs = _sigmoid(logits).astype(np.float32)

    # Model input size is recoverable from the geometry
    model_w = int(round(context.original_width * context.scale_x + 2 * context.pad_x))
    model_h = int(round(context.original_height * context.scale_y + 2 * context.pad_y))
    probs = cv2.resize(probs, (model_w, model_h), interpolation=cv2.INTER_LINEAR)

    # Strip the letterbox padding
    left = int(round(context.pad_x - 0.1))
    top = int(round(context.pad_y - 0.1))
    right = max(int(round(model_w - context.pad_x + 0.1)), left + 1)
    bottom = max(int(round(model_h - context.pad_y + 0.1)), top + 1)
    probs = probs[top:bottom, left:right]

    probs = cv2.resize(
        probs,
        (context.original_width, context.original_height),
        interpolation=cv2.INTER_LINEAR,
    )

    region = (probs > _MASK_THRESHOLD) & _box_region(
        bbox, context.original_width, context.original_height
    )
    return _paint(region, color)
