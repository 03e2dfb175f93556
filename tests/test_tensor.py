"""
Tests for the output tensor accessor.
"""

import numpy as np
import pytest

from yolo_vision.tensor import MalformedTensorError, OutputTensor


def test_channel_major_addressing():
    """Element (c, i) lives at c * anchors + i."""
    raw = np.arange(12, dtype=np.float32).reshape(3, 4)  # 3 channels, 4 anchors
    tensor = OutputTensor.from_array(raw[None])

    assert tensor.channels == 3
    assert tensor.anchors == 4
    assert tensor.at(2, 1) == 9.0
    assert tensor.channel(1).tolist() == [4.0, 5.0, 6.0, 7.0]


def test_flat_buffer_requires_anchor_count():
    """A flat buffer cannot be interpreted without the anchor count."""
    flat = np.zeros(10, dtype=np.float32)

    with pytest.raises(ValueError, match="anchor count"):
        OutputTensor.from_array(flat)

    tensor = OutputTensor.from_array(flat, anchors=5)
    assert tensor.channels == 2


def test_short_buffer_reads_zero():
    """Lenient mode treats missing values as 0."""
    tensor = OutputTensor(np.ones(6, dtype=np.float32), channels=2, anchors=4)

    assert tensor.at(1, 1) == 1.0
    assert tensor.at(1, 2) == 0.0
    assert tensor.channel(1).tolist() == [1.0, 1.0, 0.0, 0.0]
    assert tensor.channel(5).tolist() == [0.0, 0.0, 0.0, 0.0]


def test_out_of_range_indices_read_zero():
    """Anchor or channel indices outside the declared shape return 0."""
    tensor = OutputTensor(np.ones(8, dtype=np.float32), channels=2, anchors=4)

    assert tensor.at(0, 4) == 0.0
    assert tensor.at(-1, 0) == 0.0
    assert tensor.at(0, -1) == 0.0


def test_strict_mode_rejects_short_buffer():
    """Strict mode fails fast instead of zero-filling."""
    with pytest.raises(MalformedTensorError, match="expected 8"):
        OutputTensor(np.ones(6, dtype=np.float32), channels=2, anchors=4, strict=True)


def test_batch_greater_than_one_rejected():
    """Only single-image outputs are supported."""
    with pytest.raises(MalformedTensorError, match="Batch"):
        OutputTensor.from_array(np.zeros((2, 84, 10), dtype=np.float32))


def test_tensor_is_immutable():
    """The wrapped buffer is a read-only copy."""
    raw = np.ones((2, 3), dtype=np.float32)
    tensor = OutputTensor.from_array(raw)
    raw[0, 0] = 99.0

    assert tensor.at(0, 0) == 1.0
    with pytest.raises(ValueError):
        tensor.channel(0)[0] = 5.0
