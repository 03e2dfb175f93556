"""
Model loading for the YOLO vision system.

Responsibility:
    Load an ONNX model from disk into an ONNX Runtime InferenceSession
    on the requested compute backend and return it ready to run.

Non-goals:
    - No preprocessing, inference, or frame-level logic.
    - No automatic model downloading.
    - No fallback to alternative models.

Failure behavior:
    - A missing model file raises FileNotFoundError with the exact
      missing path and expected location.
    - A CUDA request on a runtime without the CUDA provider raises
      RuntimeError.
"""

import logging
from pathlib import Path
from typing import List

import onnxruntime as ort

from yolo_vision.config import ModelConfig, get_project_root

logger = logging.getLogger(__name__)

_PROVIDERS = {
    "cpu": ["CPUExecutionProvider"],
    "cuda": ["CUDAExecutionProvider", "CPUExecutionProvider"],
}


def resolve_model_path(config: ModelConfig) -> Path:
    """Return the absolute model path, resolving relative paths against the project root."""
    path = Path(config.resolved_model_path)
    if not path.is_absolute():
        path = get_project_root() / path
    return path


def select_providers(backend: str) -> List[str]:
    """Map a backend name to ONNX Runtime execution providers.

    Raises:
        RuntimeError: If the backend needs a provider this runtime lacks.
    """
    providers = list(_PROVIDERS[backend])
    available = set(ort.get_available_providers())

    if providers[0] not in available:
        raise RuntimeError(
            f"Backend '{backend}' requires {providers[0]}, but this ONNX Runtime "
            f"build only provides {sorted(available)}.\n"
            f"  Install onnxruntime-gpu or select backend 'cpu'."
        )
    return providers


def load_model(config: ModelConfig) -> ort.InferenceSession:
    """Load and configure the YOLO ONNX model.

    Args:
        config: ModelConfig containing the model path and backend preference.

    Returns:
        An onnxruntime.InferenceSession ready for inference.

    Raises:
        FileNotFoundError: If the model file does not exist.
        RuntimeError: If the requested backend is unavailable.
    """
    model_path = resolve_model_path(config)

    if not model_path.is_file():
        raise FileNotFoundError(
            f"Model file not found.\n"
            f"  Expected: {model_path}\n"
            f"  Export a YOLO11 {config.model_type} model to ONNX and place it at the path above,\n"
            f"  or update 'model.model_path' in your config."
        )

    providers = select_providers(config.backend)

    options = ort.SessionOptions()
    options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
    if config.num_threads > 0:
        options.intra_op_num_threads = config.num_threads

    logger.info("Loading model: path=%s, providers=%s", model_path, providers)
    session = ort.InferenceSession(str(model_path), sess_options=options, providers=providers)

    logger.info(
        "Model loaded successfully (inputs=%s, outputs=%s).",
        [i.name for i in session.get_inputs()],
        [o.name for o in session.get_outputs()],
    )
    return session
