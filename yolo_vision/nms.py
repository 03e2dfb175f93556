"""
Greedy class-agnostic Non-Maximum Suppression over xywh boxes.

Responsibility:
    Reduce decoded candidates to a confidence-ranked subset in which no
    two kept boxes overlap by more than the IoU threshold.

Behavior:
    - Candidates are visited in descending score order. The sort is
      stable, so equal scores keep their decode order.
    - A candidate is dropped when its IoU with a kept box is strictly
      greater than iou_threshold.
    - Non-overlapping boxes have IoU exactly 0 (no division).
    - O(n^2) in the number of candidates; decode-stage filtering keeps n small.
"""

from typing import List, Optional, Sequence

import numpy as np


def iou(box_a: Sequence[float], box_b: Sequence[float]) -> float:
    """Intersection over union of two (x, y, width, height) boxes."""
    ax, ay, aw, ah = (float(v) for v in box_a[:4])
    bx, by, bw, bh = (float(v) for v in box_b[:4])

    left = max(ax, bx)
    top = max(ay, by)
    right = min(ax + aw, bx + bw)
    bottom = min(ay + ah, by + bh)

    if right <= left or bottom <= top:
        return 0.0

    intersection = (right - left) * (bottom - top)
    union = aw * ah + bw * bh - intersection
    return intersection / union


def _iou_one_to_many(
    box: np.ndarray,
    area: float,
    others: np.ndarray,
    other_areas: np.ndarray,
) -> np.ndarray:
    left = np.maximum(box[0], others[:, 0])
    top = np.maximum(box[1], others[:, 1])
    right = np.minimum(box[0] + box[2], others[:, 0] + others[:, 2])
    bottom = np.minimum(box[1] + box[3], others[:, 1] + others[:, 3])

    overlapping = (right > left) & (bottom > top)
    intersection = np.where(overlapping, (right - left) * (bottom - top), 0.0)
    union = area + other_areas - intersection

    result = np.zeros(others.shape[0], dtype=np.float64)
    np.divide(intersection, union, out=result, where=overlapping)
    return result


def suppress(
    boxes: np.ndarray,
    scores: np.ndarray,
    iou_threshold: float,
    max_keep: Optional[int] = None,
) -> List[int]:
    """Run NMS and return kept indices, highest score first.

    Args:
        boxes: (N, 4) array of xywh boxes.
        scores: (N,) confidence scores.
        iou_threshold: Boxes with IoU above this value against a kept box are removed.
        max_keep: Stop once this many boxes are kept. Equivalent to
                  truncating the full result; None keeps everything.

    Returns:
        List of indices into `boxes`, in descending score order.
    """
    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)

    if scores.size == 0:
        return []

    areas = boxes[:, 2] * boxes[:, 3]
    order = np.argsort(-scores, kind="stable")
    keep: List[int] = []

    while order.size > 0:
        if max_keep is not None and len(keep) >= max_keep:
            break

        current = int(order[0])
        keep.append(current)

        rest = order[1:]
        overlaps = _iou_one_to_many(boxes[current], areas[current], boxes[rest], areas[rest])
        order = rest[overlaps <= iou_threshold]

    return keep
