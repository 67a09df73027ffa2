"""onnxruntime-backed inference engine."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import onnxruntime as ort
from loguru import logger
from numpy.typing import NDArray

from image_classifier.errors import InferenceExecutionFailure, ModelLoadFailure
from image_classifier.inference.base import BaseInferenceEngine
from image_classifier.types import EngineOutputs


class ONNXInferenceEngine(BaseInferenceEngine):
    """Run an ONNX model on the CPU execution provider.

    Args:
        model: Serialized model bytes or a path to a ``.onnx`` file.
    """

    def __init__(self, model: bytes | str | Path) -> None:
        source = model if isinstance(model, bytes) else str(model)
        try:
            self.session = ort.InferenceSession(
                source, providers=["CPUExecutionProvider"]
            )
        except Exception as err:
            raise ModelLoadFailure(f"could not create inference session: {err}") from err

        self.input_names = [i.name for i in self.session.get_inputs()]
        self.output_names = [o.name for o in self.session.get_outputs()]
        logger.info(
            f"ONNX session ready: inputs={self.input_names} outputs={self.output_names}"
        )

    def run(self, inputs: dict[str, NDArray[np.float32]]) -> EngineOutputs:
        unknown = sorted(set(inputs) - set(self.input_names))
        if unknown:
            raise InferenceExecutionFailure(
                f"model has no input named {unknown}; expected {self.input_names}"
            )
        try:
            results = self.session.run(self.output_names, inputs)
        except Exception as err:
            raise InferenceExecutionFailure(f"model execution failed: {err}") from err
        return dict(zip(self.output_names, results, strict=True))
