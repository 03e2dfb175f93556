"""
Static model metadata for the YOLO vision pipeline.

Holds the COCO class vocabulary, the 17-point pose skeleton, and the
built-in model table. Nothing in here is configurable at runtime; the
config layer picks values from these tables.
"""

from typing import Dict, Tuple

MODEL_TYPES = ("detection", "segmentation", "pose")

COCO_CLASSES: Tuple[str, ...] = (
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train", "truck",
    "boat", "traffic light", "fire hydrant", "stop sign", "parking meter", "bench",
    "bird", "cat", "dog", "horse", "sheep", "cow", "elephant", "bear", "zebra",
    "giraffe", "backpack", "umbrella", "handbag", "tie", "suitcase", "frisbee",
    "skis", "snowboard", "sports ball", "kite", "baseball bat", "baseball glove",
    "skateboard", "surfboard", "tennis racket", "bottle", "wine glass", "cup",
    "fork", "knife", "spoon", "bowl", "banana", "apple", "sandwich", "orange",
    "broccoli", "carrot", "hot dog", "pizza", "donut", "cake", "chair", "couch",
    "potted plant", "bed", "dining table", "toilet", "tv", "laptop", "mouse",
    "remote", "keyboard", "cell phone", "microwave", "oven", "toaster", "sink",
    "refrigerator", "book", "clock", "vase", "scissors", "teddy bear", "hair drier",
    "toothbrush",
)

POSE_KEYPOINTS: Tuple[str, ...] = (
    "nose", "left_eye", "right_eye", "left_ear", "right_ear",
    "left_shoulder", "right_shoulder", "left_elbow", "right_elbow",
    "left_wrist", "right_wrist", "left_hip", "right_hip",
    "left_knee", "right_knee", "left_ankle", "right_ankle",
)

# COCO skeleton, 1-based keypoint indices.
POSE_SKELETON: Tuple[Tuple[int, int], ...] = (
    (16, 14), (14, 12), (17, 15), (15, 13), (12, 13),
    (6, 12), (7, 13), (6, 7), (6, 8), (7, 9),
    (8, 10), (9, 11), (2, 3), (1, 2), (1, 3),
    (2, 4), (3, 5), (4, 6), (5, 7),
)

# Channel layout of the YOLO11 heads
BOX_CHANNELS = 4
NUM_CLASSES = len(COCO_CLASSES)
NUM_MASK_COEFFICIENTS = 32
NUM_KEYPOINTS = len(POSE_KEYPOINTS)
KEYPOINT_VALUES = 3  # x, y, confidence

MODEL_WIDTH = 640
MODEL_HEIGHT = 640
NUM_ANCHORS = 8400

UNKNOWN_CLASS = "unknown"
PERSON_CLASS = "person"

# Placeholder segmentation fill (RGBA)
MASK_COLOR: Tuple[int, int, int, int] = (255, 0, 0, 128)

DEFAULT_MODELS: Dict[str, dict] = {
    "detection": {
        "name": "YOLO11n",
        "path": "models/yolo11n.onnx",
        "input_shape": (1, 3, MODEL_HEIGHT, MODEL_WIDTH),
        "output_shape": (1, BOX_CHANNELS + NUM_CLASSES, NUM_ANCHORS),
        "classes": COCO_CLASSES,
    },
    "segmentation": {
        "name": "YOLO11n-seg",
        "path": "models/yolo11n-seg.onnx",
        "input_shape": (1, 3, MODEL_HEIGHT, MODEL_WIDTH),
        "output_shape": (1, BOX_CHANNELS + NUM_CLASSES + NUM_MASK_COEFFICIENTS, NUM_ANCHORS),
        "classes": COCO_CLASSES,
    },
    "pose": {
        "name": "YOLO11n-pose",
        "path": "models/yolo11n-pose.onnx",
        "input_shape": (1, 3, MODEL_HEIGHT, MODEL_WIDTH),
        "output_shape": (1, BOX_CHANNELS + 1 + NUM_KEYPOINTS * KEYPOINT_VALUES, NUM_ANCHORS),
        "classes": (PERSON_CLASS,),
    },
}

# Drawing palette (BGR), indexed by class id modulo length
DEFAULT_COLORS: Tuple[Tuple[int, int, int], ...] = (
    (107, 107, 255), (196, 205, 78), (209, 183, 69), (180, 206, 150), (167, 234, 255),
    (221, 160, 221), (200, 216, 152), (111, 220, 247), (206, 143, 187), (233, 193, 133),
)
