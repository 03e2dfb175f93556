"""
YOLO Vision — object detection, instance segmentation, and pose estimation
with YOLO11 ONNX models.

Public API:
    - Detector: Loads a model and runs preprocess → inference → postprocess.
    - postprocess / PostProcessOptions: Decode a raw output tensor without a model.
    - GeometryContext: Mapping from model input space to the original image.
    - Detection, Segmentation, Pose, Keypoint, InferenceResult: Result types.
    - load_config / AppConfig: Layered configuration.

Usage:
    from yolo_vision import Detector

    detector = Detector()
    result = detector.predict(frame)
    for det in result.detections:
        print(det.class_name, det.score, det.bbox)
"""

from yolo_vision.config import AppConfig, load_config
from yolo_vision.detector import Detector
from yolo_vision.geometry import GeometryContext, map_to_original
from yolo_vision.nms import iou, suppress
from yolo_vision.postprocessor import PostProcessOptions, postprocess
from yolo_vision.results import Detection, InferenceResult, Keypoint, Pose, Segmentation
from yolo_vision.tensor import MalformedTensorError, OutputTensor

__all__ = [
    "AppConfig",
    "Detection",
    "Detector",
    "GeometryContext",
    "InferenceResult",
    "Keypoint",
    "MalformedTensorError",
    "OutputTensor",
    "Pose",
    "PostProcessOptions",
    "Segmentation",
    "iou",
    "load_config",
    "map_to_original",
    "postprocess",
    "suppress",
]
