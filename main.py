"""
YOLO Vision CLI Entrypoint.

Responsibility:
    Parse command-line arguments, configure the application, wire together
    the detector and I/O handlers, and run the main processing loop.

Usage:
    python main.py --source 0                                  # Webcam, detection
    python main.py --source images/ --model-type pose --output-mode save_image
    python main.py --source clip.mp4 --model-type segmentation --mask-mode prototype
    python main.py --config my_config.yaml

This module is the executable entry point. It should not be imported
by other modules.
"""

import argparse
import logging
import sys
import time

# Configure logging before importing local modules
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("main")

from yolo_vision.config import load_config
from yolo_vision.constants import MODEL_TYPES
from yolo_vision.detector import Detector
from yolo_vision.input_handler import InputHandler
from yolo_vision.masks import MASK_MODES
from yolo_vision.output_handler import OutputHandler


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="YOLO Vision — detection, segmentation, and pose estimation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument("--source", type=str,
                        help="Input source: '0' for webcam, path to image/video file, or directory.")
    parser.add_argument("--config", type=str, help="Path to YAML configuration file.")
    parser.add_argument("--model-type", type=str, choices=MODEL_TYPES,
                        help="Task head of the model. Overrides config.")
    parser.add_argument("--model", type=str, help="Path to the ONNX model. Overrides config.")
    parser.add_argument("--backend", type=str, choices=["cpu", "cuda"],
                        help="Compute backend preference. Overrides config.")
    parser.add_argument("--confidence", type=float,
                        help="Confidence threshold (0.0 - 1.0). Overrides config.")
    parser.add_argument("--iou", type=float,
                        help="NMS IoU threshold (0.0 - 1.0). Overrides config.")
    parser.add_argument("--max-detections", type=int,
                        help="Maximum results per frame. Overrides config.")
    parser.add_argument("--min-box-size", type=float,
                        help="Minimum box width/height in pixels. Overrides config.")
    parser.add_argument("--mask-mode", type=str, choices=MASK_MODES,
                        help="Segmentation mask policy. Overrides config.")
    parser.add_argument("--output-mode", type=str,
                        help="Comma-separated outputs: display, save_image, save_video, "
                             "save_json, save_csv. Overrides config.")
    parser.add_argument("--output-path", type=str,
                        help="Directory for output artifacts. Overrides config.")

    return parser.parse_args()


def _cli_overrides(args: argparse.Namespace) -> dict:
    return {
        "model": {
            "model_type": args.model_type,
            "model_path": args.model,
            "backend": args.backend,
        },
        "detection": {
            "confidence_threshold": args.confidence,
            "iou_threshold": args.iou,
            "max_detections": args.max_detections,
            "min_box_size": args.min_box_size,
            "mask_mode": args.mask_mode,
        },
        "input": {"source": args.source},
        "output": {"mode": args.output_mode, "save_path": args.output_path},
    }


def main() -> int:
    """Main execution loop."""
    args = parse_args()

    # 1. Load Configuration (CLI args > ENV > YAML > Defaults)
    try:
        config = load_config(args.config, overrides=_cli_overrides(args))
        logger.info("Configuration active for this run (model_type=%s).", config.model.model_type)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Configuration error: %s", e)
        return 1

    # 2. Initialize Components
    try:
        detector = Detector(config)
        input_handler = InputHandler(
            source=config.input.source,
            resize_width=config.input.resize_width,
        )
        output_handler = OutputHandler(config)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error("Initialization failed: %s", e)
        return 1

    # 3. Processing Loop
    logger.info("Starting processing loop. Press 'q' or ESC to quit in display mode.")

    frame_count = 0
    inference_ms = 0.0
    start_time = time.perf_counter()

    try:
        for frame_id, frame in input_handler:
            frame_count += 1

            result = detector.predict(frame)
            inference_ms += result.inference_ms

            if frame_count % 30 == 0:
                logger.info(
                    "Processed %d frames (last: %d results, pre %.1f ms, infer %.1f ms, post %.1f ms)",
                    frame_count, len(result.results),
                    result.preprocess_ms, result.inference_ms, result.postprocess_ms,
                )

            if not output_handler.process_frame(frame_id, frame, result.results):
                logger.info("Stopping loop per user request.")
                break

    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
    except Exception as e:
        logger.exception("Runtime error during processing: %s", e)
        return 1
    finally:
        # 4. Cleanup
        elapsed = time.perf_counter() - start_time
        fps = frame_count / elapsed if elapsed > 0 else 0.0
        avg_inference = inference_ms / frame_count if frame_count else 0.0

        input_handler.release()
        output_handler.finalize()

        logger.info(
            "Processing finished. Total frames: %d. Avg FPS: %.2f. Avg inference: %.1f ms.",
            frame_count, fps, avg_inference,
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
