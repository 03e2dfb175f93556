"""
Configuration management for the YOLO vision system.

Provides a layered configuration system with the following precedence
(highest to lowest):

    CLI arguments > Environment variables > YAML config file > Defaults

Design constraints:
    - The system MUST run with zero configuration (safe defaults only).
    - Missing or invalid values fail early and loudly.
    - No decoding logic, I/O, or model loading belongs here.

Non-goals:
    - No dynamic reloading.
    - No database-backed or remote configuration.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

from yolo_vision.constants import DEFAULT_MODELS, MODEL_HEIGHT, MODEL_TYPES, MODEL_WIDTH
from yolo_vision.masks import MASK_MODES
from yolo_vision.postprocessor import PostProcessOptions

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project root resolution
# ---------------------------------------------------------------------------
# Resolved relative to this file's location: yolo_vision/config.py → repo root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def get_project_root() -> Path:
    """Return the resolved project root directory."""
    return _PROJECT_ROOT


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelConfig:
    """Model-related configuration.

    Attributes:
        model_type: 'detection', 'segmentation', or 'pose'.
        model_path: Path to the .onnx file (relative to project root).
                    None selects the built-in path for model_type.
        backend: Compute backend — 'cpu' or 'cuda'.
        input_size: Model input (width, height).
        letterbox: True for aspect-preserving letterbox, False to stretch.
        num_threads: ONNX Runtime intra-op threads; 0 lets the runtime decide.
    """

    model_type: str = "detection"
    model_path: Optional[str] = None
    backend: str = "cpu"
    input_size: Tuple[int, int] = (MODEL_WIDTH, MODEL_HEIGHT)
    letterbox: bool = True
    num_threads: int = 0

    @property
    def resolved_model_path(self) -> str:
        """model_path, or the built-in default for model_type."""
        if self.model_path is not None:
            return self.model_path
        return DEFAULT_MODELS[self.model_type]["path"]


@dataclass(frozen=True)
class DetectionConfig:
    """Postprocessing thresholds.

    Attributes:
        confidence_threshold: Minimum confidence to accept a candidate.
        iou_threshold: IoU threshold for non-maximum suppression.
        max_detections: Hard cap on results per frame.
        min_box_size: Minimum box width and height in original pixels.
        mask_mode: 'box' or 'prototype' (segmentation only).
    """

    confidence_threshold: float = 0.5
    iou_threshold: float = 0.4
    max_detections: int = 100
    min_box_size: float = 20.0
    mask_mode: str = "box"


@dataclass(frozen=True)
class InputConfig:
    """Input source configuration.

    Attributes:
        source: Input source — file path, directory path, video path,
                or integer device index (as string or int).
        resize_width: Optional width to downscale input frames before inference.
    """

    source: str = "0"
    resize_width: Optional[int] = None


@dataclass(frozen=True)
class OutputConfig:
    """Output behavior configuration.

    Attributes:
        mode: Comma-separated output modes: 'display', 'save_image',
              'save_video', 'save_json', 'save_csv'.
        save_path: Directory where output artifacts are written.
    """

    mode: str = "display"
    save_path: str = "output/"


@dataclass(frozen=True)
class VisualizationConfig:
    """Visualization rendering parameters.

    Attributes:
        thickness: Box line thickness in pixels.
        show_labels: Whether to render class labels.
        show_confidence: Whether to append the confidence percentage.
        mask_opacity: Blend factor for segmentation masks.
        keypoint_threshold: Minimum keypoint confidence to draw a point or edge.
    """

    thickness: int = 2
    show_labels: bool = True
    show_confidence: bool = True
    mask_opacity: float = 0.5
    keypoint_threshold: float = 0.5


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    model: ModelConfig = field(default_factory=ModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    visualization: VisualizationConfig = field(default_factory=VisualizationConfig)

    def postprocess_options(self) -> PostProcessOptions:
        """Build the PostProcessOptions for this configuration."""
        return PostProcessOptions(
            confidence_threshold=self.detection.confidence_threshold,
            iou_threshold=self.detection.iou_threshold,
            max_detections=self.detection.max_detections,
            model_type=self.model.model_type,
            min_box_size=self.detection.min_box_size,
            mask_mode=self.detection.mask_mode,
            class_names=DEFAULT_MODELS[self.model.model_type]["classes"],
        )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_VALID_BACKENDS = {"cpu", "cuda"}
_VALID_OUTPUT_MODES = {"display", "save_image", "save_video", "save_json", "save_csv"}


def _validate(config: AppConfig) -> None:
    """Validate configuration values. Raises ValueError on invalid state."""

    if config.model.model_type not in MODEL_TYPES:
        raise ValueError(
            f"Invalid model.model_type: '{config.model.model_type}'. "
            f"Must be one of {MODEL_TYPES}."
        )

    if config.model.backend not in _VALID_BACKENDS:
        raise ValueError(
            f"Invalid model.backend: '{config.model.backend}'. "
            f"Must be one of {_VALID_BACKENDS}."
        )

    if len(config.model.input_size) != 2 or any(d <= 0 for d in config.model.input_size):
        raise ValueError(
            f"model.input_size must be a (width, height) tuple of positive values, "
            f"got {config.model.input_size}."
        )

    if config.model.num_threads < 0:
        raise ValueError(
            f"model.num_threads must be >= 0, got {config.model.num_threads}."
        )

    modes = set(m.strip() for m in config.output.mode.split(","))
    invalid_modes = modes - _VALID_OUTPUT_MODES
    if invalid_modes:
        raise ValueError(
            f"Invalid output.mode(s): {invalid_modes}. "
            f"Valid modes: {_VALID_OUTPUT_MODES}. "
            f"Use comma-separated values for multiple outputs."
        )

    if not (0.0 < config.detection.confidence_threshold <= 1.0):
        raise ValueError(
            f"detection.confidence_threshold must be in (0.0, 1.0], "
            f"got {config.detection.confidence_threshold}."
        )

    if not (0.0 < config.detection.iou_threshold <= 1.0):
        raise ValueError(
            f"detection.iou_threshold must be in (0.0, 1.0], "
            f"got {config.detection.iou_threshold}."
        )

    if config.detection.max_detections <= 0:
        raise ValueError(
            f"detection.max_detections must be positive, "
            f"got {config.detection.max_detections}."
        )

    if config.detection.min_box_size < 0:
        raise ValueError(
            f"detection.min_box_size must be non-negative, "
            f"got {config.detection.min_box_size}."
        )

    if config.detection.mask_mode not in MASK_MODES:
        raise ValueError(
            f"Invalid detection.mask_mode: '{config.detection.mask_mode}'. "
            f"Must be one of {MASK_MODES}."
        )

    if not (0.0 <= config.visualization.mask_opacity <= 1.0):
        raise ValueError(
            f"visualization.mask_opacity must be in [0.0, 1.0], "
            f"got {config.visualization.mask_opacity}."
        )

    if config.input.resize_width is not None and config.input.resize_width <= 0:
        raise ValueError(
            f"input.resize_width must be positive or None, "
            f"got {config.input.resize_width}."
        )


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _parse_tuple(value, expected_len: int, cast_type=float):
    """Convert a list from YAML into a tuple of the expected type and length."""
    if isinstance(value, (list, tuple)):
        if len(value) != expected_len:
            raise ValueError(
                f"Expected {expected_len} values, got {len(value)}: {value}"
            )
        return tuple(cast_type(v) for v in value)
    if isinstance(value, str) and "," in value:
        return _parse_tuple([v.strip() for v in value.split(",")], expected_len, cast_type)
    return value


def _parse_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _build_model_config(raw: dict) -> ModelConfig:
    """Build ModelConfig from a raw YAML dict."""
    kwargs = {}
    if "model_type" in raw:
        kwargs["model_type"] = str(raw["model_type"]).lower()
    if raw.get("model_path") is not None:
        kwargs["model_path"] = str(raw["model_path"])
    if "backend" in raw:
        kwargs["backend"] = str(raw["backend"]).lower()
    if "input_size" in raw:
        kwargs["input_size"] = _parse_tuple(raw["input_size"], 2, int)
    if "letterbox" in raw:
        kwargs["letterbox"] = _parse_bool(raw["letterbox"])
    if "num_threads" in raw:
        kwargs["num_threads"] = int(raw["num_threads"])
    return ModelConfig(**kwargs)


def _build_detection_config(raw: dict) -> DetectionConfig:
    """Build DetectionConfig from a raw YAML dict."""
    kwargs = {}
    if "confidence_threshold" in raw:
        kwargs["confidence_threshold"] = float(raw["confidence_threshold"])
    if "iou_threshold" in raw:
        kwargs["iou_threshold"] = float(raw["iou_threshold"])
    if "max_detections" in raw:
        kwargs["max_detections"] = int(raw["max_detections"])
    if "min_box_size" in raw:
        kwargs["min_box_size"] = float(raw["min_box_size"])
    if "mask_mode" in raw:
        kwargs["mask_mode"] = str(raw["mask_mode"]).lower()
    return DetectionConfig(**kwargs)


def _build_input_config(raw: dict) -> InputConfig:
    """Build InputConfig from a raw YAML dict."""
    kwargs = {}
    if "source" in raw:
        kwargs["source"] = str(raw["source"])
    if "resize_width" in raw:
        val = raw["resize_width"]
        kwargs["resize_width"] = int(val) if val is not None else None
    return InputConfig(**kwargs)


def _build_output_config(raw: dict) -> OutputConfig:
    """Build OutputConfig from a raw YAML dict."""
    kwargs = {}
    if "mode" in raw:
        kwargs["mode"] = str(raw["mode"]).lower()
    if "save_path" in raw:
        kwargs["save_path"] = str(raw["save_path"])
    return OutputConfig(**kwargs)


def _build_visualization_config(raw: dict) -> VisualizationConfig:
    """Build VisualizationConfig from a raw YAML dict."""
    kwargs = {}
    if "thickness" in raw:
        kwargs["thickness"] = int(raw["thickness"])
    if "show_labels" in raw:
        kwargs["show_labels"] = _parse_bool(raw["show_labels"])
    if "show_confidence" in raw:
        kwargs["show_confidence"] = _parse_bool(raw["show_confidence"])
    if "mask_opacity" in raw:
        kwargs["mask_opacity"] = float(raw["mask_opacity"])
    if "keypoint_threshold" in raw:
        kwargs["keypoint_threshold"] = float(raw["keypoint_threshold"])
    return VisualizationConfig(**kwargs)


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "YOLO_VISION_"


def _apply_env_overrides(raw: dict) -> dict:
    """Apply environment variable overrides to the raw config dict.

    Environment variables follow the pattern:
        YOLO_VISION_MODEL_TYPE=pose
        YOLO_VISION_DETECTION_CONFIDENCE_THRESHOLD=0.7
    """
    env_map = {
        f"{_ENV_PREFIX}MODEL_TYPE": ("model", "model_type"),
        f"{_ENV_PREFIX}MODEL_PATH": ("model", "model_path"),
        f"{_ENV_PREFIX}MODEL_BACKEND": ("model", "backend"),
        f"{_ENV_PREFIX}MODEL_NUM_THREADS": ("model", "num_threads"),
        f"{_ENV_PREFIX}DETECTION_CONFIDENCE_THRESHOLD": ("detection", "confidence_threshold"),
        f"{_ENV_PREFIX}DETECTION_IOU_THRESHOLD": ("detection", "iou_threshold"),
        f"{_ENV_PREFIX}DETECTION_MAX_DETECTIONS": ("detection", "max_detections"),
        f"{_ENV_PREFIX}DETECTION_MIN_BOX_SIZE": ("detection", "min_box_size"),
        f"{_ENV_PREFIX}DETECTION_MASK_MODE": ("detection", "mask_mode"),
        f"{_ENV_PREFIX}INPUT_SOURCE": ("input", "source"),
        f"{_ENV_PREFIX}INPUT_RESIZE_WIDTH": ("input", "resize_width"),
        f"{_ENV_PREFIX}OUTPUT_MODE": ("output", "mode"),
        f"{_ENV_PREFIX}OUTPUT_SAVE_PATH": ("output", "save_path"),
    }

    for env_var, (section, key) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            raw.setdefault(section, {})[key] = value
            logger.debug("Config override from env: %s=%s", env_var, value)

    return raw


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

def load_config(config_path: Optional[str] = None, overrides: Optional[dict] = None) -> AppConfig:
    """Load and validate application configuration.

    Precedence (highest → lowest):
        overrides (CLI) > Environment variables > YAML file > Hard-coded defaults

    Args:
        config_path: Path to a YAML configuration file. If None,
                     the system runs entirely on defaults.
        overrides: Nested dict of section -> key -> value applied last,
                   e.g. {"detection": {"confidence_threshold": 0.7}}.
                   None values are ignored.

    Returns:
        A validated, frozen AppConfig instance.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ValueError: If any configuration value is invalid.
        yaml.YAMLError: If the YAML file is malformed.
    """
    raw: dict = {}

    # --- Layer 1: YAML file ---
    if config_path is not None:
        resolved = Path(config_path)
        if not resolved.is_absolute():
            resolved = _PROJECT_ROOT / resolved

        if not resolved.is_file():
            raise FileNotFoundError(
                f"Configuration file not found: {resolved}. "
                f"Provide a valid path or omit to use defaults."
            )

        logger.info("Loading config from: %s", resolved)
        with open(resolved, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    # --- Layer 2: Environment variable overrides ---
    raw = _apply_env_overrides(raw)

    # --- Layer 3: CLI overrides ---
    for section, values in (overrides or {}).items():
        for key, value in values.items():
            if value is not None:
                raw.setdefault(section, {})[key] = value

    config = AppConfig(
        model=_build_model_config(raw.get("model", {})),
        detection=_build_detection_config(raw.get("detection", {})),
        input=_build_input_config(raw.get("input", {})),
        output=_build_output_config(raw.get("output", {})),
        visualization=_build_visualization_config(raw.get("visualization", {})),
    )

    _validate(config)

    logger.debug("Configuration loaded: %s", config)
    return config
