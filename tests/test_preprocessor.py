"""
Tests for the preprocessing module.
"""

import numpy as np
import pytest

from yolo_vision.config import ModelConfig
from yolo_vision.preprocessor import preprocess


def test_preprocess_valid_input():
    """Test standard letterbox preprocessing on a valid frame."""
    config = ModelConfig()

    # Create a dummy BGR frame (solid blue)
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    frame[:, :, 0] = 255

    blob, context = preprocess(frame, config)

    assert isinstance(blob, np.ndarray)
    assert blob.shape == (1, 3, 640, 640)
    assert blob.dtype == np.float32
    assert context.scale_x == pytest.approx(1.0)
    assert context.pad_x == pytest.approx(0.0)
    assert context.pad_y == pytest.approx(80.0)

    # BGR -> RGB: blue lands in the last channel, scaled to [0, 1]
    assert blob[0, 2, 320, 320] == pytest.approx(1.0)
    assert blob[0, 0, 320, 320] == pytest.approx(0.0)


def test_preprocess_letterbox_padding():
    """Padding rows carry the gray letterbox color."""
    frame = np.zeros((480, 640, 3), dtype=np.uint8)

    blob, _ = preprocess(frame, ModelConfig())

    assert blob[0, :, 10, 320] == pytest.approx([114 / 255] * 3, abs=1e-6)
    assert blob[0, :, 630, 320] == pytest.approx([114 / 255] * 3, abs=1e-6)
    assert blob[0, :, 320, 320] == pytest.approx([0.0] * 3)


def test_preprocess_downscales_large_frame():
    """A frame larger than the model input is scaled down uniformly."""
    frame = np.zeros((1080, 1920, 3), dtype=np.uint8)

    blob, context = preprocess(frame, ModelConfig())

    assert blob.shape == (1, 3, 640, 640)
    assert context.scale_x == context.scale_y == pytest.approx(1 / 3)
    assert context.pad_y == pytest.approx(140.0)
    assert (context.original_width, context.original_height) == (1920, 1080)


def test_preprocess_ratio_mode():
    """Without letterbox each axis is stretched and nothing is padded."""
    config = ModelConfig(letterbox=False)
    frame = np.zeros((480, 1280, 3), dtype=np.uint8)

    blob, context = preprocess(frame, config)

    assert blob.shape == (1, 3, 640, 640)
    assert context.scale_x == pytest.approx(0.5)
    assert context.scale_y == pytest.approx(640 / 480)
    assert context.pad_x == context.pad_y == 0.0


def test_preprocess_custom_input_size():
    """Test consistent output scaling for a non-default input size."""
    config = ModelConfig(input_size=(320, 320))
    frame = np.zeros((200, 200, 3), dtype=np.uint8)

    blob, context = preprocess(frame, config)

    assert blob.shape == (1, 3, 320, 320)
    assert context.scale_x == pytest.approx(1.6)


def test_preprocess_empty_frame():
    """Test that preprocessing rejects empty frames."""
    with pytest.raises(ValueError):
        preprocess(np.array([]), ModelConfig())


def test_preprocess_none_frame():
    """Test that preprocessing rejects None."""
    with pytest.raises(ValueError):
        preprocess(None, ModelConfig())


def test_preprocess_grayscale_frame():
    """Single-channel frames must be converted to BGR first."""
    with pytest.raises(ValueError, match="H, W, 3"):
        preprocess(np.zeros((100, 100), dtype=np.uint8), ModelConfig())
