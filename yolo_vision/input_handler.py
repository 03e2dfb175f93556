"""
Frame acquisition for the YOLO vision CLI.

Responsibility:
    Turn a source string into a stream of (frame_id, BGR frame) pairs.
    Supported sources: a single image, a directory of images, a video
    file, or a webcam device index.

Robustness:
    - The source is classified and opened at construction time.
    - Unreadable images and dropped webcam reads are logged and skipped.
    - A webcam that keeps failing ends the stream instead of spinning.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp"}
VIDEO_EXTENSIONS = {".mp4", ".avi", ".mov", ".mkv", ".wmv", ".flv", ".webm"}

_MAX_WEBCAM_FAILURES = 30

Frame = Tuple[int, np.ndarray]


def classify_source(source: Union[str, int]) -> str:
    """Return 'webcam', 'image', 'video', or 'directory' for a source.

    Raises:
        FileNotFoundError: If a path source does not exist.
        ValueError: If a file has an unsupported extension.
    """
    text = str(source).strip()
    if text.isdigit():
        return "webcam"

    path = Path(text)
    if path.is_dir():
        return "directory"
    if not path.is_file():
        raise FileNotFoundError(
            f"Input source not found: '{text}'. "
            f"Provide a valid file path, directory, or device index."
        )

    ext = path.suffix.lower()
    if ext in IMAGE_EXTENSIONS:
        return "image"
    if ext in VIDEO_EXTENSIONS:
        return "video"
    raise ValueError(
        f"Unrecognized file extension '{ext}' for source '{text}'. "
        f"Supported images: {sorted(IMAGE_EXTENSIONS)}. "
        f"Supported videos: {sorted(VIDEO_EXTENSIONS)}."
    )


class InputHandler:
    """Iterable over the frames of one input source.

    Usage:
        handler = InputHandler("clips/street.mp4", resize_width=960)
        for frame_id, frame in handler:
            ...
        handler.release()
    """

    def __init__(self, source: Union[str, int], resize_width: Optional[int] = None) -> None:
        """Classify and open the source.

        Raises:
            FileNotFoundError: If a path source does not exist.
            ValueError: Unsupported extension or an empty image directory.
            RuntimeError: If a video or webcam cannot be opened.
        """
        self._resize_width = resize_width
        self._cap: Optional[cv2.VideoCapture] = None
        self._image_paths: List[Path] = []

        text = str(source).strip()
        self.mode = classify_source(text)

        if self.mode == "webcam":
            self._open_capture(int(text))
        elif self.mode == "video":
            self._open_capture(text)
        elif self.mode == "image":
            self._image_paths = [Path(text)]
        else:
            self._image_paths = sorted(
                p for p in Path(text).iterdir() if p.suffix.lower() in IMAGE_EXTENSIONS
            )
            if not self._image_paths:
                raise ValueError(f"No image files found in directory: '{text}'.")
            logger.info("Found %d images in directory: %s", len(self._image_paths), text)

        logger.info("InputHandler initialized: mode=%s, source=%s", self.mode, text)

    def _open_capture(self, target: Union[str, int]) -> None:
        self._cap = cv2.VideoCapture(target)
        if not self._cap.isOpened():
            what = f"webcam device {target}" if isinstance(target, int) else f"video file '{target}'"
            raise RuntimeError(f"Failed to open {what}. Ensure the source exists and is accessible.")

    def __iter__(self) -> Iterator[Frame]:
        if self._cap is None:
            yield from self._read_images()
        else:
            yield from self._read_capture()

    def _read_images(self) -> Iterator[Frame]:
        for frame_id, path in enumerate(self._image_paths):
            frame = cv2.imread(str(path))
            if frame is None:
                logger.warning("Skipping unreadable image (frame_id=%d): %s", frame_id, path)
                continue
            yield frame_id, self._fit_width(frame)

    def _read_capture(self) -> Iterator[Frame]:
        frame_id = 0
        failures = 0

        while True:
            ok, frame = self._cap.read()
            if ok and frame is not None:
                failures = 0
                yield frame_id, self._fit_width(frame)
                frame_id += 1
                continue

            if self.mode == "video":
                logger.info("End of video reached at frame %d.", frame_id)
                return

            failures += 1
            if failures >= _MAX_WEBCAM_FAILURES:
                logger.error("Webcam failed %d reads in a row; stopping.", failures)
                return
            logger.warning("Failed to read frame %d from webcam, skipping.", frame_id)
            frame_id += 1

    def _fit_width(self, frame: np.ndarray) -> np.ndarray:
        """Downscale to resize_width, keeping aspect ratio. Never upscales."""
        if self._resize_width is None:
            return frame
        h, w = frame.shape[:2]
        if w <= self._resize_width:
            return frame
        new_h = int(h * self._resize_width / w)
        return cv2.resize(frame, (self._resize_width, new_h), interpolation=cv2.INTER_AREA)

    def release(self) -> None:
        """Release the capture handle, if any."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.debug("VideoCapture released.")

    def __enter__(self) -> "InputHandler":
        return self

    def __exit__(self, *exc) -> None:
        self.release()
