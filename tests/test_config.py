"""
Tests for the configuration module.
"""

import pytest

from yolo_vision.config import (
    AppConfig,
    DetectionConfig,
    ModelConfig,
    OutputConfig,
    _validate,
    load_config,
)


def test_load_defaults():
    """Test loading configuration without any file."""
    config = load_config(None)
    assert isinstance(config, AppConfig)
    assert config.model.model_type == "detection"
    assert config.model.backend == "cpu"
    assert config.detection.confidence_threshold == 0.5
    assert config.detection.iou_threshold == 0.4
    assert config.detection.max_detections == 100
    assert config.detection.min_box_size == 20.0
    assert config.detection.mask_mode == "box"


def test_default_model_path_follows_type():
    """Without model_path the built-in file for the model type is used."""
    assert ModelConfig().resolved_model_path == "models/yolo11n.onnx"
    assert ModelConfig(model_type="pose").resolved_model_path == "models/yolo11n-pose.onnx"
    assert ModelConfig(model_path="custom.onnx").resolved_model_path == "custom.onnx"


@pytest.mark.parametrize(
    "bad_config, match",
    [
        (AppConfig(detection=DetectionConfig(confidence_threshold=1.5)), "confidence_threshold"),
        (AppConfig(detection=DetectionConfig(iou_threshold=-0.2)), "iou_threshold"),
        (AppConfig(detection=DetectionConfig(confidence_threshold=0.0)), "confidence_threshold"),
        (AppConfig(detection=DetectionConfig(iou_threshold=0.0)), "iou_threshold"),
        (AppConfig(detection=DetectionConfig(max_detections=0)), "max_detections"),
        (AppConfig(detection=DetectionConfig(min_box_size=-1.0)), "min_box_size"),
        (AppConfig(detection=DetectionConfig(mask_mode="outline")), "mask_mode"),
        (AppConfig(model=ModelConfig(backend="invalid")), "backend"),
        (AppConfig(model=ModelConfig(model_type="obb")), "model_type"),
        (AppConfig(model=ModelConfig(input_size=(640, 0))), "input_size"),
        (AppConfig(output=OutputConfig(mode="display,print")), "output.mode"),
    ],
)
def test_validation_failure(bad_config, match):
    """Test fail-fast validation."""
    with pytest.raises(ValueError, match=match):
        _validate(bad_config)


def test_env_override(monkeypatch):
    """Test environment variable overrides."""
    monkeypatch.setenv("YOLO_VISION_DETECTION_CONFIDENCE_THRESHOLD", "0.9")
    monkeypatch.setenv("YOLO_VISION_MODEL_TYPE", "pose")

    config = load_config(None)

    assert config.detection.confidence_threshold == 0.9
    assert config.model.model_type == "pose"


def test_yaml_file(tmp_path):
    """Values from a YAML file replace the defaults."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "model:\n"
        "  model_type: segmentation\n"
        "  input_size: [320, 320]\n"
        "detection:\n"
        "  max_detections: 10\n"
        "  mask_mode: prototype\n",
        encoding="utf-8",
    )

    config = load_config(str(path))

    assert config.model.model_type == "segmentation"
    assert config.model.input_size == (320, 320)
    assert config.detection.max_detections == 10
    assert config.detection.mask_mode == "prototype"


def test_missing_yaml_file(tmp_path):
    """A config path that does not exist fails loudly."""
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))


def test_overrides_beat_env(monkeypatch):
    """CLI overrides take precedence over environment variables; None is ignored."""
    monkeypatch.setenv("YOLO_VISION_DETECTION_IOU_THRESHOLD", "0.6")

    config = load_config(
        None,
        overrides={"detection": {"iou_threshold": 0.3, "max_detections": None}},
    )

    assert config.detection.iou_threshold == 0.3
    assert config.detection.max_detections == 100


def test_invalid_override_rejected():
    """Overrides go through the same validation as files."""
    with pytest.raises(ValueError, match="confidence_threshold"):
        load_config(None, overrides={"detection": {"confidence_threshold": 2.0}})


def test_postprocess_options():
    """AppConfig builds matching PostProcessOptions for the model type."""
    config = load_config(None, overrides={"model": {"model_type": "pose"}})

    options = config.postprocess_options()

    assert options.model_type == "pose"
    assert options.class_names == ("person",)
    assert options.confidence_threshold == config.detection.confidence_threshold
    assert options.min_box_size == config.detection.min_box_size
