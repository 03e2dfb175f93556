"""
Coordinate mapping between model input space and original image space.

Responsibility:
    Describe how the original frame was fitted into the fixed-size model
    input (GeometryContext) and map boxes and points from model space
    back to original-image pixels.

Two fitting policies are supported:
    - letterbox: one uniform scale for both axes, symmetric padding
      centers the scaled image in the model input.
    - ratio: each axis scaled independently to fill the model input,
      no padding.

In both cases ``scale`` is model pixels per original pixel, so the
inverse mapping is ``(v - pad) / scale`` on each axis.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from yolo_vision.constants import MODEL_HEIGHT, MODEL_WIDTH


@dataclass(frozen=True)
class GeometryContext:
    """Mapping parameters produced by the preprocessor.

    Attributes:
        original_width: Width of the original frame in pixels.
        original_height: Height of the original frame in pixels.
        scale_x: Model pixels per original pixel along x. Must be > 0.
        scale_y: Model pixels per original pixel along y. Must be > 0.
        pad_x: Left padding in model pixels.
        pad_y: Top padding in model pixels.
    """

    original_width: int
    original_height: int
    scale_x: float
    scale_y: float
    pad_x: float = 0.0
    pad_y: float = 0.0

    def __post_init__(self) -> None:
        if self.scale_x <= 0 or self.scale_y <= 0:
            raise ValueError(
                f"Geometry scales must be positive, got "
                f"scale_x={self.scale_x}, scale_y={self.scale_y}."
            )
        if self.original_width <= 0 or self.original_height <= 0:
            raise ValueError(
                f"Original image dimensions must be positive, got "
                f"{self.original_width}x{self.original_height}."
            )

    @classmethod
    def letterbox(
        cls,
        original_width: int,
        original_height: int,
        model_width: int = MODEL_WIDTH,
        model_height: int = MODEL_HEIGHT,
    ) -> "GeometryContext":
        """Uniform scale preserving aspect ratio, padding split evenly."""
        scale = min(model_width / original_width, model_height / original_height)
        pad_x = (model_width - original_width * scale) / 2
        pad_y = (model_height - original_height * scale) / 2
        return cls(original_width, original_height, scale, scale, pad_x, pad_y)

    @classmethod
    def ratio(
        cls,
        original_width: int,
        original_height: int,
        model_width: int = MODEL_WIDTH,
        model_height: int = MODEL_HEIGHT,
    ) -> "GeometryContext":
        """Independent per-axis stretch, no padding."""
        return cls(
            original_width,
            original_height,
            model_width / original_width,
            model_height / original_height,
        )


def map_to_original(
    cx: float,
    cy: float,
    w: float,
    h: float,
    context: GeometryContext,
) -> Tuple[float, float, float, float]:
    """Map a center-form model-space box to a corner-form original-space box.

    Returns:
        (x, y, width, height) clamped to the original image. Width and
        height are never negative.
    """
    x1 = (cx - w / 2 - context.pad_x) / context.scale_x
    y1 = (cy - h / 2 - context.pad_y) / context.scale_y
    x2 = (cx + w / 2 - context.pad_x) / context.scale_x
    y2 = (cy + h / 2 - context.pad_y) / context.scale_y

    x1 = min(max(x1, 0.0), context.original_width)
    y1 = min(max(y1, 0.0), context.original_height)
    x2 = min(max(x2, 0.0), context.original_width)
    y2 = min(max(y2, 0.0), context.original_height)

    return x1, y1, max(x2 - x1, 0.0), max(y2 - y1, 0.0)


def map_boxes_to_original(
    cx: np.ndarray,
    cy: np.ndarray,
    w: np.ndarray,
    h: np.ndarray,
    context: GeometryContext,
) -> np.ndarray:
    """Vectorized map_to_original. Returns an (N, 4) float64 array of xywh."""
    cx = np.asarray(cx, dtype=np.float64)
    cy = np.asarray(cy, dtype=np.float64)
    w = np.asarray(w, dtype=np.float64)
    h = np.asarray(h, dtype=np.float64)

    x1 = np.clip((cx - w / 2 - context.pad_x) / context.scale_x, 0.0, context.original_width)
    y1 = np.clip((cy - h / 2 - context.pad_y) / context.scale_y, 0.0, context.original_height)
    x2 = np.clip((cx + w / 2 - context.pad_x) / context.scale_x, 0.0, context.original_width)
    y2 = np.clip((cy + h / 2 - context.pad_y) / context.scale_y, 0.0, context.original_height)

    return np.stack(
        [x1, y1, np.maximum(x2 - x1, 0.0), np.maximum(y2 - y1, 0.0)],
        axis=-1,
    )


def map_points_to_original(
    x: np.ndarray,
    y: np.ndarray,
    context: GeometryContext,
) -> Tuple[np.ndarray, np.ndarray]:
    """Map model-space points to original space, clamped to the image."""
    ox = (np.asarray(x, dtype=np.float64) - context.pad_x) / context.scale_x
    oy = (np.asarray(y, dtype=np.float64) - context.pad_y) / context.scale_y
    return (
        np.clip(ox, 0.0, context.original_width),
        np.clip(oy, 0.0, context.original_height),
    )
