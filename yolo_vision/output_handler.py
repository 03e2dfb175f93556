"""
Output routing for the YOLO vision CLI.

Responsibility:
    Send each frame's results to the configured sinks: display window,
    annotated images, annotated video, JSON, CSV. Several sinks can be
    active at once (comma-separated output.mode).

Non-goals:
    - No inference or input acquisition.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import cv2
import numpy as np

from yolo_vision.config import AppConfig, get_project_root
from yolo_vision.results import Detection
from yolo_vision.serializer import save_csv, save_json
from yolo_vision.visualizer import draw_results, show_frame

logger = logging.getLogger(__name__)

_FILE_MODES = {"save_image", "save_video", "save_json", "save_csv"}
_QUIT_KEYS = {ord("q"), 27}  # 'q' or ESC
_VIDEO_FPS = 20.0


class OutputHandler:
    """Routes per-frame results to the active output sinks.

    Usage:
        handler = OutputHandler(config)
        keep_going = handler.process_frame(frame_id, frame, results)
        ...
        handler.finalize()  # writes JSON/CSV, closes video and windows
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._model_type = config.model.model_type
        self._modes = {m.strip() for m in config.output.mode.split(",") if m.strip()}
        self._video_writer: Optional[cv2.VideoWriter] = None
        self._buffer: Dict[int, List[dict]] = {}

        save_path = Path(config.output.save_path)
        if not save_path.is_absolute():
            save_path = get_project_root() / save_path
        self._save_path = save_path

        if self._modes & _FILE_MODES:
            self._save_path.mkdir(parents=True, exist_ok=True)

        logger.info("OutputHandler initialized: modes=%s, save_path=%s", self._modes, self._save_path)

    @property
    def modes(self) -> set:
        return set(self._modes)

    def process_frame(self, frame_id: int, frame: np.ndarray, results: List[Detection]) -> bool:
        """Route one frame. Returns False when the user asked to quit."""
        keep_going = True

        if "display" in self._modes:
            key = show_frame(frame, results, self._model_type, self._config.visualization)
            if key in _QUIT_KEYS:
                logger.info("Quit signal received (key press).")
                keep_going = False

        if self._modes & {"save_image", "save_video"}:
            annotated = draw_results(frame, results, self._model_type, self._config.visualization)
            if "save_image" in self._modes:
                self._write_image(frame_id, annotated)
            if "save_video" in self._modes:
                self._write_video(annotated)

        if self._modes & {"save_json", "save_csv"}:
            # Flattened rows only; masks are summarized by to_dict()
            self._buffer[frame_id] = [r.to_dict() for r in results]

        return keep_going

    def _write_image(self, frame_id: int, annotated: np.ndarray) -> None:
        output_file = self._save_path / f"frame_{frame_id:06d}.jpg"
        cv2.imwrite(str(output_file), annotated)
        logger.debug("Saved frame %d to %s", frame_id, output_file)

    def _write_video(self, annotated: np.ndarray) -> None:
        if self._video_writer is None:
            output_file = str(self._save_path / "output.avi")
            h, w = annotated.shape[:2]
            fourcc = cv2.VideoWriter_fourcc(*"XVID")
            self._video_writer = cv2.VideoWriter(output_file, fourcc, _VIDEO_FPS, (w, h))
            logger.info("Video writer opened: %s (%dx%d)", output_file, w, h)
        self._video_writer.write(annotated)

    def finalize(self) -> None:
        """Flush buffered results and release resources."""
        if "save_json" in self._modes and self._buffer:
            save_json(self._buffer, str(self._save_path / "results.json"), self._model_type)

        if "save_csv" in self._modes and self._buffer:
            save_csv(self._buffer, str(self._save_path / "results.csv"))

        if self._video_writer is not None:
            self._video_writer.release()
            self._video_writer = None
            logger.info("Video writer released.")

        if "display" in self._modes:
            cv2.destroyAllWindows()

        self._buffer.clear()
        logger.info("OutputHandler finalized.")
