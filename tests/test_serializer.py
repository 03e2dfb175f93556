"""
Tests for JSON and CSV export.
"""

import csv
import json

import numpy as np

from yolo_vision.masks import build_box_mask
from yolo_vision.results import Detection, Keypoint, Pose, Segmentation
from yolo_vision.serializer import save_csv, save_json


def _results():
    return {
        1: [Detection((10.0, 20.0, 30.0, 40.0), 0.75, "dog", 16)],
        0: [
            Detection((0.0, 0.0, 50.0, 50.0), 0.9, "person", 0),
            Detection((100.0, 100.0, 25.5, 25.5), 0.6, "car", 2),
        ],
    }


def test_save_json(tmp_path):
    """Frames are written in id order with totals."""
    path = tmp_path / "nested" / "results.json"

    save_json(_results(), str(path))

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["model_type"] == "detection"
    assert payload["total_frames"] == 2
    assert payload["total_results"] == 3
    assert [f["frame_id"] for f in payload["frames"]] == [0, 1]
    first = payload["frames"][0]["results"][0]
    assert first == {
        "x": 0.0, "y": 0.0, "width": 50.0, "height": 50.0,
        "score": 0.9, "class": "person", "class_index": 0,
    }


def test_save_json_pose_and_segmentation(tmp_path):
    """Poses carry keypoints and segmentations a mask pixel count."""
    keypoints = tuple(Keypoint(1.0, 2.0, 0.5, f"kp{i}") for i in range(17))
    pose = Pose((0.0, 0.0, 20.0, 40.0), 0.8, "person", 0, keypoints=keypoints)
    mask = build_box_mask((0, 0, 20, 30), width=64, height=64)
    seg = Segmentation((0.0, 0.0, 20.0, 30.0), 0.7, "cat", 15, mask=mask)

    pose_path = tmp_path / "pose.json"
    seg_path = tmp_path / "seg.json"
    save_json({0: [pose]}, str(pose_path), model_type="pose")
    save_json({0: [seg]}, str(seg_path), model_type="segmentation")

    pose_entry = json.loads(pose_path.read_text())["frames"][0]["results"][0]
    assert len(pose_entry["keypoints"]) == 17
    assert pose_entry["keypoints"][3] == {"name": "kp3", "x": 1.0, "y": 2.0, "confidence": 0.5}

    seg_entry = json.loads(seg_path.read_text())["frames"][0]["results"][0]
    assert seg_entry["mask_pixels"] == 20 * 30
    assert "mask" not in seg_entry


def test_save_csv(tmp_path):
    """One row per result with the fixed column order."""
    path = tmp_path / "results.csv"

    save_csv(_results(), str(path))

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    assert list(rows[0].keys()) == [
        "frame_id", "class", "class_index", "score", "x", "y", "width", "height",
    ]
    assert [(r["frame_id"], r["class"]) for r in rows] == [("0", "person"), ("0", "car"), ("1", "dog")]
    assert float(rows[1]["width"]) == 25.5


def test_save_csv_ignores_keypoints(tmp_path):
    """Extra fields such as keypoints do not break CSV export."""
    keypoints = (Keypoint(1.0, 1.0, 0.9, "nose"),)
    pose = Pose((0.0, 0.0, 20.0, 40.0), 0.8, "person", 0, keypoints=keypoints)
    path = tmp_path / "pose.csv"

    save_csv({0: [pose]}, str(path))

    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    assert "nose" not in lines[1]
    assert np.isclose(float(lines[1].split(",")[3]), 0.8)


def test_save_accepts_flattened_rows(tmp_path):
    """Rows already flattened with to_dict() serialize the same as result objects."""
    rows = {fid: [r.to_dict() for r in results] for fid, results in _results().items()}
    from_objects = tmp_path / "objects.json"
    from_rows = tmp_path / "rows.json"

    save_json(_results(), str(from_objects))
    save_json(rows, str(from_rows))
    save_csv(rows, str(tmp_path / "rows.csv"))

    assert json.loads(from_rows.read_text()) == json.loads(from_objects.read_text())
    assert len((tmp_path / "rows.csv").read_text().strip().splitlines()) == 4
