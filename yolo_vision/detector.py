"""
Detector — the public API for YOLO detection, segmentation, and pose.

Public contract:
    Detector.predict(frame: np.ndarray) -> InferenceResult
    Detector.detect / segment / estimate_poses -> list of results

Constraints:
    - Input must be a BGR numpy array (as returned by OpenCV).
    - Postprocessing is stateless per call and deterministic.
    - Calls into the ONNX Runtime session are serialized with a lock;
      preprocessing and postprocessing run outside it, so one Detector
      may be shared between threads.

Non-goals:
    - No file reading, camera access, or I/O of any kind.
    - No visualization or output writing.
    - No tracking or temporal state.
"""

import logging
import threading
import time
from typing import List, Optional

import numpy as np

from yolo_vision.config import AppConfig, load_config
from yolo_vision.model_loader import load_model
from yolo_vision.postprocessor import postprocess
from yolo_vision.preprocessor import preprocess
from yolo_vision.results import Detection, InferenceResult, Pose, Segmentation

logger = logging.getLogger(__name__)


class Detector:
    """YOLO11 detector running on ONNX Runtime.

    Usage:
        detector = Detector()                       # Uses safe defaults
        detector = Detector(config=my_config)       # Custom config
        result = detector.predict(frame)            # BGR numpy array
        poses = Detector(pose_config).estimate_poses(frame)

    The constructor loads the model once. Subsequent predict() calls
    reuse the session.
    """

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        """Initialize the detector and load the model.

        Args:
            config: Application configuration. If None, safe defaults
                    are used (no config file required).

        Raises:
            FileNotFoundError: If the model file is missing.
            RuntimeError: If the requested backend is unavailable.
            ValueError: If configuration values are invalid.
        """
        if config is None:
            config = load_config()

        self._config = config
        self._options = config.postprocess_options()
        self._session = load_model(config.model)
        self._session_lock = threading.Lock()

        self._input_name = self._session.get_inputs()[0].name
        self._output_names = [o.name for o in self._session.get_outputs()]

        if config.model.model_type == "segmentation" and config.detection.mask_mode == "prototype" \
                and len(self._output_names) < 2:
            raise RuntimeError(
                f"mask_mode 'prototype' needs a segmentation model with a prototype output, "
                f"but the model only exposes {self._output_names}."
            )

        logger.info(
            "Detector initialized (model_type=%s, backend=%s, confidence_threshold=%.2f, "
            "iou_threshold=%.2f)",
            config.model.model_type,
            config.model.backend,
            config.detection.confidence_threshold,
            config.detection.iou_threshold,
        )

    def predict(self, frame: np.ndarray) -> InferenceResult:
        """Run the full pipeline on a single BGR frame.

        Returns:
            An InferenceResult whose populated list matches the model type,
            sorted by confidence (descending), with per-stage timings.

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame has incorrect shape or is empty.
        """
        self._validate_frame(frame)

        t0 = time.perf_counter()
        blob, context = preprocess(frame, self._config.model)
        t1 = time.perf_counter()

        with self._session_lock:
            outputs = self._session.run(self._output_names, {self._input_name: blob})
        t2 = time.perf_counter()

        protos = outputs[1] if self._options.model_type == "segmentation" and len(outputs) > 1 else None
        results = postprocess(outputs[0], context, self._options, protos=protos)
        t3 = time.perf_counter()

        model_type = self._options.model_type
        return InferenceResult(
            model_type=model_type,
            detections=results if model_type == "detection" else None,
            segmentations=results if model_type == "segmentation" else None,
            poses=results if model_type == "pose" else None,
            preprocess_ms=(t1 - t0) * 1000.0,
            inference_ms=(t2 - t1) * 1000.0,
            postprocess_ms=(t3 - t2) * 1000.0,
        )

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Detect objects; requires a detection model."""
        return self._predict_as("detection", frame).detections

    def segment(self, frame: np.ndarray) -> List[Segmentation]:
        """Segment instances; requires a segmentation model."""
        return self._predict_as("segmentation", frame).segmentations

    def estimate_poses(self, frame: np.ndarray) -> List[Pose]:
        """Estimate human poses; requires a pose model."""
        return self._predict_as("pose", frame).poses

    @property
    def config(self) -> AppConfig:
        """Return the active configuration (read-only)."""
        return self._config

    def _predict_as(self, model_type: str, frame: np.ndarray) -> InferenceResult:
        if self._options.model_type != model_type:
            raise ValueError(
                f"This detector was configured for '{self._options.model_type}', "
                f"not '{model_type}'. Set model.model_type accordingly."
            )
        return self.predict(frame)

    @staticmethod
    def _validate_frame(frame: np.ndarray) -> None:
        """Validate that the input frame meets the API contract.

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame is empty or has wrong dimensions.
        """
        if not isinstance(frame, np.ndarray):
            raise TypeError(
                f"Expected frame to be a numpy ndarray, "
                f"got {type(frame).__name__}. "
                f"Use cv2.imread() or VideoCapture.read() to obtain frames."
            )

        if frame.size == 0:
            raise ValueError(
                "Frame is empty (zero size). "
                "Ensure the input source is providing valid frames."
            )

        if frame.ndim != 3:
            raise ValueError(
                f"Expected a 3-dimensional frame (H, W, C), "
                f"got {frame.ndim} dimensions with shape {frame.shape}. "
                f"Grayscale images must be converted to BGR first."
            )

        if frame.shape[2] != 3:
            raise ValueError(
                f"Expected 3 channels (BGR), got {frame.shape[2]} channels. "
                f"Input must be a BGR image as returned by OpenCV."
            )
