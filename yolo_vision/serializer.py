"""
Serialization for the YOLO vision pipeline.

Responsibility:
    Export per-frame results (detections, segmentations, poses) to JSON
    and CSV for downstream consumption or offline analysis.

Non-goals:
    - No rendering, display, or inference logic.
    - No streaming output — writes complete files on finalize.
    - Segmentation masks are summarized (pixel count), not written out.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, List, Union

from yolo_vision.results import Detection

ResultRow = Union[Detection, dict]

logger = logging.getLogger(__name__)

_CSV_FIELDS = ["frame_id", "class", "class_index", "score", "x", "y", "width", "height"]


def save_json(
    results_by_frame: Dict[int, List[ResultRow]],
    output_path: str,
    model_type: str = "detection",
) -> None:
    """Export all results to a JSON file.

    Output schema:
        {
            "model_type": "pose",
            "frames": [
                {
                    "frame_id": 0,
                    "results": [
                        {"x": ..., "y": ..., "width": ..., "height": ...,
                         "score": ..., "class": ..., "class_index": ...,
                         "keypoints": [...]}           # pose only
                    ]
                }
            ],
            "total_frames": N,
            "total_results": M
        }

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    frames = []
    total_results = 0

    for frame_id in sorted(results_by_frame.keys()):
        results = results_by_frame[frame_id]
        total_results += len(results)
        frames.append({
            "frame_id": frame_id,
            "results": [_as_row(r) for r in results],
        })

    payload = {
        "model_type": model_type,
        "frames": frames,
        "total_frames": len(frames),
        "total_results": total_results,
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info(
        "JSON output saved: %s (%d frames, %d results)",
        output_path, len(frames), total_results,
    )


def save_csv(
    results_by_frame: Dict[int, List[ResultRow]],
    output_path: str,
) -> None:
    """Export all results to a CSV file, one row per result.

    Columns: frame_id, class, class_index, score, x, y, width, height.
    Keypoints and masks are not included; use JSON for those.

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()

        total = 0
        for frame_id in sorted(results_by_frame.keys()):
            for result in results_by_frame[frame_id]:
                writer.writerow({"frame_id": frame_id, **_as_row(result)})
                total += 1

    logger.info("CSV output saved: %s (%d rows)", output_path, total)


def _as_row(result: ResultRow) -> dict:
    """Accept a result object or its already-flattened to_dict() form."""
    return result if isinstance(result, dict) else result.to_dict()


def _ensure_parent_dir(path: str) -> None:
    """Create parent directories if they don't exist."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
