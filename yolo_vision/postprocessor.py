"""
Postprocessing for the YOLO vision pipeline.

Responsibility:
    Turn the raw output tensor of a detection, segmentation, or pose
    head into an ordered list of result objects in original-image
    coordinates: decode -> NMS -> truncate to max_detections -> assemble.

Ordering:
    Results come out in descending confidence, exactly in NMS selection
    order. Truncation is a prefix cut with no re-ranking.

Non-goals:
    - No drawing, saving, or display logic.
    - No model loading or inference.
    - No state across calls; every function here is pure.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from yolo_vision.constants import (
    COCO_CLASSES,
    MODEL_TYPES,
    NUM_MASK_COEFFICIENTS,
    PERSON_CLASS,
    POSE_KEYPOINTS,
    UNKNOWN_CLASS,
)
from yolo_vision.decoder import (
    DEFAULT_MIN_BOX_SIZE,
    decode_detections,
    decode_poses,
    decode_segmentations,
)
from yolo_vision.geometry import GeometryContext
from yolo_vision.masks import MASK_MODES, build_box_mask, build_prototype_mask, normalize_prototypes
from yolo_vision.nms import suppress
from yolo_vision.results import Detection, Keypoint, Pose, Segmentation
from yolo_vision.tensor import MalformedTensorError, OutputTensor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostProcessOptions:
    """Options shared by all assemblers.

    Attributes:
        confidence_threshold: Minimum class score (person confidence for pose), in (0, 1].
        iou_threshold: NMS overlap limit in (0, 1].
        max_detections: Hard cap on returned results.
        model_type: 'detection', 'segmentation', or 'pose'.
        min_box_size: Minimum mapped width and height in original pixels.
        mask_mode: 'box' (rectangular fill) or 'prototype' (decoded masks).
        class_names: Class vocabulary for detection/segmentation labels.
        strict: Reject short output buffers instead of reading them as 0. Also
                re-checks an OutputTensor that was built leniently.
    """

    confidence_threshold: float = 0.5
    iou_threshold: float = 0.4
    max_detections: int = 100
    model_type: str = "detection"
    min_box_size: float = DEFAULT_MIN_BOX_SIZE
    mask_mode: str = "box"
    class_names: Sequence[str] = COCO_CLASSES
    strict: bool = False


def validate_options(options: PostProcessOptions) -> None:
    """Validate postprocess options. Raises ValueError on invalid state."""

    if options.model_type not in MODEL_TYPES:
        raise ValueError(
            f"Unsupported model_type: '{options.model_type}'. "
            f"Must be one of {MODEL_TYPES}."
        )

    if not (0.0 < options.confidence_threshold <= 1.0):
        raise ValueError(
            f"confidence_threshold must be in (0.0, 1.0], "
            f"got {options.confidence_threshold}."
        )

    if not (0.0 < options.iou_threshold <= 1.0):
        raise ValueError(
            f"iou_threshold must be in (0.0, 1.0], got {options.iou_threshold}."
        )

    if isinstance(options.max_detections, bool) or not isinstance(options.max_detections, int) \
            or options.max_detections <= 0:
        raise ValueError(
            f"max_detections must be a positive integer, got {options.max_detections!r}."
        )

    if options.min_box_size < 0:
        raise ValueError(
            f"min_box_size must be non-negative, got {options.min_box_size}."
        )

    if options.mask_mode not in MASK_MODES:
        raise ValueError(
            f"Unsupported mask_mode: '{options.mask_mode}'. Must be one of {MASK_MODES}."
        )


def _as_tensor(output: Union[np.ndarray, OutputTensor], strict: bool) -> OutputTensor:
    """Wrap a raw output; a prebuilt OutputTensor is re-checked when strict is set."""
    if isinstance(output, OutputTensor):
        expected = output.channels * output.anchors
        if strict and output.size < expected:
            raise MalformedTensorError(
                f"Output buffer holds {output.size} values, "
                f"expected {expected} for shape [{output.channels}, {output.anchors}]."
            )
        return output
    return OutputTensor.from_array(output, strict=strict)


def _class_name(class_names: Sequence[str], class_index: int) -> str:
    if 0 <= class_index < len(class_names):
        return class_names[class_index]
    return UNKNOWN_CLASS


def _bbox(row: np.ndarray):
    return float(row[0]), float(row[1]), float(row[2]), float(row[3])


def process_detections(
    output: Union[np.ndarray, OutputTensor],
    context: GeometryContext,
    options: PostProcessOptions,
) -> List[Detection]:
    """Decode, suppress, and label a [4 + C, N] detection head."""
    validate_options(options)
    tensor = _as_tensor(output, options.strict)

    candidates = decode_detections(
        tensor,
        context,
        options.confidence_threshold,
        min_box_size=options.min_box_size,
        num_classes=max(tensor.channels - 4, 0),
    )
    selected = suppress(
        candidates.boxes, candidates.scores, options.iou_threshold,
        max_keep=options.max_detections,
    )

    detections = []
    for i in selected:
        class_index = int(candidates.class_ids[i])
        detections.append(Detection(
            bbox=_bbox(candidates.boxes[i]),
            score=float(candidates.scores[i]),
            class_name=_class_name(options.class_names, class_index),
            class_index=class_index,
        ))

    logger.debug(
        "Detection postprocess: %d candidates, %d kept", len(candidates), len(detections)
    )
    return detections


def process_segmentations(
    output: Union[np.ndarray, OutputTensor],
    context: GeometryContext,
    options: PostProcessOptions,
    protos: Optional[np.ndarray] = None,
) -> List[Segmentation]:
    """Decode, suppress, and build masks for a [4 + C + K, N] segmentation head.

    Args:
        output: Detection output of the segmentation model.
        context: Geometry used to fit the frame into the model input.
        options: Postprocess options; mask_mode selects the mask policy.
        protos: Prototype maps (1, K, mh, mw). Required for mask_mode='prototype',
                ignored for 'box'.

    Raises:
        ValueError: Invalid options, or prototype mode without prototypes.
    """
    validate_options(options)
    if options.mask_mode == "prototype" and protos is None:
        raise ValueError("mask_mode='prototype' requires the prototype mask output.")

    tensor = _as_tensor(output, options.strict)
    num_coefficients = NUM_MASK_COEFFICIENTS
    prototypes = None
    if options.mask_mode == "prototype":
        prototypes = normalize_prototypes(protos)
        num_coefficients = prototypes.shape[0]

    candidates = decode_segmentations(
        tensor,
        context,
        options.confidence_threshold,
        min_box_size=options.min_box_size,
        num_classes=max(tensor.channels - 4 - num_coefficients, 0),
        num_mask_coefficients=num_coefficients,
    )
    selected = suppress(
        candidates.boxes, candidates.scores, options.iou_threshold,
        max_keep=options.max_detections,
    )

    segmentations = []
    for i in selected:
        bbox = _bbox(candidates.boxes[i])
        if prototypes is not None:
            mask = build_prototype_mask(candidates.mask_coefficients[i], prototypes, bbox, context)
        else:
            mask = build_box_mask(bbox, context.original_width, context.original_height)

        class_index = int(candidates.class_ids[i])
        segmentations.append(Segmentation(
            bbox=bbox,
            score=float(candidates.scores[i]),
            class_name=_class_name(options.class_names, class_index),
            class_index=class_index,
            mask=mask,
        ))

    logger.debug(
        "Segmentation postprocess: %d candidates, %d kept (mask_mode=%s)",
        len(candidates), len(segmentations), options.mask_mode,
    )
    return segmentations


def process_poses(
    output: Union[np.ndarray, OutputTensor],
    context: GeometryContext,
    options: PostProcessOptions,
) -> List[Pose]:
    """Decode, suppress, and name keypoints for a [5 + 17 * 3, N] pose head."""
    validate_options(options)
    tensor = _as_tensor(output, options.strict)

    candidates = decode_poses(
        tensor,
        context,
        options.confidence_threshold,
        min_box_size=options.min_box_size,
    )
    selected = suppress(
        candidates.boxes, candidates.scores, options.iou_threshold,
        max_keep=options.max_detections,
    )

    poses = []
    for i in selected:
        keypoints = tuple(
            Keypoint(
                x=float(kx),
                y=float(ky),
                confidence=float(kconf),
                name=POSE_KEYPOINTS[j] if j < len(POSE_KEYPOINTS) else f"keypoint_{j}",
            )
            for j, (kx, ky, kconf) in enumerate(candidates.keypoints[i])
        )
        poses.append(Pose(
            bbox=_bbox(candidates.boxes[i]),
            score=float(candidates.scores[i]),
            class_name=PERSON_CLASS,
            class_index=0,
            keypoints=keypoints,
        ))

    logger.debug("Pose postprocess: %d candidates, %d kept", len(candidates), len(poses))
    return poses


def postprocess(
    output: Union[np.ndarray, OutputTensor],
    context: GeometryContext,
    options: PostProcessOptions,
    protos: Optional[np.ndarray] = None,
) -> List[Detection]:
    """Dispatch to the assembler matching options.model_type.

    Returns:
        List of Detection, Segmentation, or Pose objects, sorted by
        confidence (descending). Empty list if nothing survives.

    Raises:
        ValueError: If the options are invalid.
        MalformedTensorError: If options.strict and the output is short.
    """
    validate_options(options)

    if options.model_type == "segmentation":
        return process_segmentations(output, context, options, protos=protos)
    if options.model_type == "pose":
        return process_poses(output, context, options)
    return process_detections(output, context, options)
