"""
Preprocessing for the YOLO vision pipeline.

Responsibility:
    Fit a raw BGR frame into the fixed-size model input and describe
    the fit as a GeometryContext so the postprocessor can map results
    back to original-image pixels.

Non-goals:
    - No frame acquisition or I/O.
    - No inference or result decoding.

Hard-coded:
    - Output blob is RGB, NCHW, float32, scaled to [0, 1].
    - Letterbox padding color is (114, 114, 114), the YOLO convention.
"""

from typing import Tuple

import cv2
import numpy as np

from yolo_vision.config import ModelConfig
from yolo_vision.geometry import GeometryContext

_PAD_COLOR = (114, 114, 114)


def preprocess(frame: np.ndarray, config: ModelConfig) -> Tuple[np.ndarray, GeometryContext]:
    """Convert a raw BGR frame into a model input blob.

    Args:
        frame: Input image as a BGR numpy array (H, W, 3).
        config: ModelConfig providing input_size and the letterbox policy.

    Returns:
        (blob, context) where blob has shape (1, 3, H_in, W_in) and dtype
        float32, and context maps model space back to the frame.

    Raises:
        ValueError: If the frame is empty or has unexpected dimensions.
    """
    if frame is None or frame.size == 0:
        raise ValueError(
            "Cannot preprocess an empty frame. "
            "Ensure the input source is providing valid frames."
        )

    if frame.ndim != 3 or frame.shape[2] != 3:
        raise ValueError(
            f"Expected a BGR frame of shape (H, W, 3), got {frame.shape}."
        )

    orig_h, orig_w = frame.shape[:2]
    model_w, model_h = config.input_size

    if config.letterbox:
        context = GeometryContext.letterbox(orig_w, orig_h, model_w, model_h)
        fitted = _letterbox(frame, context, model_w, model_h)
    else:
        context = GeometryContext.ratio(orig_w, orig_h, model_w, model_h)
        fitted = cv2.resize(frame, (model_w, model_h), interpolation=cv2.INTER_LINEAR)

    blob = cv2.dnn.blobFromImage(
        image=fitted,
        scalefactor=1.0 / 255.0,
        size=(model_w, model_h),
        mean=(0.0, 0.0, 0.0),
        swapRB=True,   # OpenCV frames are BGR, YOLO expects RGB
        crop=False,
    )

    return blob, context


def _letterbox(
    frame: np.ndarray,
    context: GeometryContext,
    model_w: int,
    model_h: int,
) -> np.ndarray:
    """Resize with the context scale and pad to (model_w, model_h)."""
    orig_h, orig_w = frame.shape[:2]
    resized_w = int(round(orig_w * context.scale_x))
    resized_h = int(round(orig_h * context.scale_y))

    if (resized_w, resized_h) != (orig_w, orig_h):
        frame = cv2.resize(frame, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)

    top = int(round(context.pad_y - 0.1))
    left = int(round(context.pad_x - 0.1))
    bottom = model_h - resized_h - top
    right = model_w - resized_w - left

    return cv2.copyMakeBorder(
        frame,
        top, max(bottom, 0), left, max(right, 0),
        cv2.BORDER_CONSTANT,
        value=_PAD_COLOR,
    )
