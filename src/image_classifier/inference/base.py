"""Abstract base class for inference engines."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
from numpy.typing import NDArray

from image_classifier.types import EngineOutputs


class BaseInferenceEngine(ABC):
    """Executes a model on named input tensors.

    Implementations are created once per model and reused across
    classification calls.  ``run`` must not mutate engine state in a way
    that is visible to other callers.
    """

    @abstractmethod
    def run(self, inputs: dict[str, NDArray[np.float32]]) -> EngineOutputs:
        """Execute the model and return every output tensor by name.

        Raises:
            InferenceExecutionFailure: The engine rejected the inputs or
                failed while executing.
        """
