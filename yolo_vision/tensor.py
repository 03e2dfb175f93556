"""
Channel-major view over a raw network output buffer.

Responsibility:
    Wrap the flat output of a YOLO head, declared as [channels, anchors],
    and give bounds-checked access to whole channels or single values.
    The element for (channel c, anchor i) lives at ``c * anchors + i``.

Failure behavior:
    - Lenient (default): reads past the end of the buffer return 0.0.
      A warning is logged once per tensor when the buffer is short.
    - Strict: a short buffer or a batch dimension other than 1 raises
      MalformedTensorError at construction.
"""

import logging
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)


class MalformedTensorError(ValueError):
    """Raised in strict mode when the output buffer does not fit its declared shape."""


class OutputTensor:
    """Immutable channel-major tensor with zero-fill on out-of-range reads.

    Usage:
        tensor = OutputTensor.from_array(output)          # (1, C, N) or (C, N)
        tensor = OutputTensor(flat, channels=84, anchors=8400)
        cx = tensor.channel(0)                            # shape (N,)
        score = tensor.at(4, 17)
    """

    def __init__(
        self,
        data: np.ndarray,
        channels: int,
        anchors: int,
        strict: bool = False,
    ) -> None:
        if channels <= 0 or anchors <= 0:
            raise ValueError(
                f"Tensor shape must be positive, got channels={channels}, anchors={anchors}."
            )

        flat = np.asarray(data, dtype=np.float32).reshape(-1)
        expected = channels * anchors

        if flat.size < expected:
            if strict:
                raise MalformedTensorError(
                    f"Output buffer holds {flat.size} values, "
                    f"expected {expected} for shape [{channels}, {anchors}]."
                )
            logger.warning(
                "Output buffer holds %d values, expected %d for shape [%d, %d]; "
                "missing values read as 0.",
                flat.size, expected, channels, anchors,
            )

        flat = flat.copy()
        flat.setflags(write=False)

        self._data = flat
        self._channels = channels
        self._anchors = anchors

    @classmethod
    def from_array(
        cls,
        output: np.ndarray,
        anchors: Optional[int] = None,
        channels: Optional[int] = None,
        strict: bool = False,
    ) -> "OutputTensor":
        """Build a tensor from a raw session output.

        Args:
            output: Array shaped (1, C, N), (C, N), or flat. A flat array
                    needs `anchors` (and optionally `channels`).
            anchors: Anchor count; inferred from the last axis when omitted.
            channels: Channel count; inferred when omitted.
            strict: Raise MalformedTensorError instead of zero-filling.

        Raises:
            MalformedTensorError: Batch size other than 1 (always), or a
                short buffer in strict mode.
            ValueError: Shape cannot be inferred.
        """
        arr = np.asarray(output)

        if arr.ndim == 3:
            if arr.shape[0] != 1:
                raise MalformedTensorError(
                    f"Batch > 1 is not supported (got shape {arr.shape}). "
                    f"Pass one image at a time."
                )
            arr = arr[0]

        if arr.ndim == 2:
            channels = channels if channels is not None else arr.shape[0]
            anchors = anchors if anchors is not None else arr.shape[1]
        elif arr.ndim == 1:
            if anchors is None:
                raise ValueError("A flat output buffer requires an explicit anchor count.")
            if channels is None:
                channels = -(-arr.size // anchors)  # ceil division
        else:
            raise ValueError(f"Unsupported output shape: {arr.shape}")

        return cls(arr, channels=channels, anchors=anchors, strict=strict)

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def anchors(self) -> int:
        return self._anchors

    @property
    def size(self) -> int:
        """Number of values actually present in the buffer."""
        return self._data.size

    def at(self, channel: int, anchor: int) -> float:
        """Return the value for (channel, anchor), or 0.0 when out of range."""
        if not (0 <= anchor < self._anchors) or channel < 0:
            return 0.0
        idx = channel * self._anchors + anchor
        if idx >= self._data.size:
            return 0.0
        return float(self._data[idx])

    def channel(self, channel: int) -> np.ndarray:
        """Return one channel as an (anchors,) float32 array, zero-filled past the buffer end."""
        start = channel * self._anchors
        stop = start + self._anchors
        if channel >= 0 and stop <= self._data.size:
            return self._data[start:stop]

        row = np.zeros(self._anchors, dtype=np.float32)
        if channel >= 0 and start < self._data.size:
            available = self._data[start:]
            row[: available.size] = available
        return row

    def channels_slice(self, start: int, count: int) -> np.ndarray:
        """Return `count` consecutive channels as a (count, anchors) array."""
        if count <= 0:
            return np.zeros((0, self._anchors), dtype=np.float32)
        return np.stack([self.channel(start + j) for j in range(count)])
