"""End-to-end classification: bytes -> tensor -> scores -> label.

Resources are loaded once into a :class:`ClassificationContext` that is
passed explicitly to every call.  The context is immutable and may be shared
between concurrent calls as long as the engine supports concurrent ``run``.
Every stage failure is terminal and carries the name of the failing stage.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import numpy as np
from loguru import logger
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from image_classifier.config import IMAGENET_MEAN, IMAGENET_STD, ClassifierConfig
from image_classifier.errors import (
    ClassificationError,
    InferenceExecutionFailure,
    MissingOutputTensor,
)
from image_classifier.inference.base import BaseInferenceEngine
from image_classifier.inference.classifier import classify, top_k_predictions
from image_classifier.inference.onnx_engine import ONNXInferenceEngine
from image_classifier.io.image import decode_image, save_pixel_grid
from image_classifier.io.resources import ResourceLoader
from image_classifier.schemas.annotation import ClassificationPrediction
from image_classifier.transforms.geometry import resize_and_crop
from image_classifier.transforms.normalize import build_tensor
from image_classifier.types import EngineOutputs, NormalizedTensor


@contextmanager
def pipeline_stage(name: str) -> Iterator[None]:
    """Tag any :class:`ClassificationError` escaping the block with ``name``."""
    logger.debug(f"Stage '{name}'")
    try:
        yield
    except ClassificationError as err:
        if err.stage is None:
            err.stage = name
        raise


class ClassificationContext(BaseModel):
    """Everything a classification call needs, loaded once per process."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    engine: BaseInferenceEngine
    labels: tuple[str, ...] = Field(min_length=1)
    target_width: int = Field(default=640, gt=0)
    target_height: int = Field(default=640, gt=0)
    input_name: str = "images"
    output_name: str = "output0"
    mean: tuple[float, float, float] = IMAGENET_MEAN
    std: tuple[float, float, float] = IMAGENET_STD
    inference_timeout: float | None = None
    debug_dump_path: Path | None = None

    _executor: ThreadPoolExecutor | None = PrivateAttr(default=None)

    def model_post_init(self, __context: Any) -> None:
        if self.inference_timeout is not None:
            self._executor = ThreadPoolExecutor(thread_name_prefix="inference")

    def close(self) -> None:
        """Release the worker threads used for timed inference calls."""
        if self._executor is not None:
            self._executor.shutdown(wait=False)

    @classmethod
    def from_config(
        cls,
        config: ClassifierConfig,
        loader: ResourceLoader | None = None,
        engine_factory: Callable[[bytes], BaseInferenceEngine] | None = None,
    ) -> ClassificationContext:
        """Load labels and model described by ``config``."""
        if loader is None:
            with pipeline_stage("open assets"):
                loader = ResourceLoader.from_location(config.assets_dir)
        with pipeline_stage("load labels"):
            labels = loader.load_labels(config.labels_file)
        with pipeline_stage("load model"):
            factory = engine_factory or ONNXInferenceEngine
            engine = factory(loader.load_model_bytes(config.onnx_file))
        return cls(
            engine=engine,
            labels=labels,
            target_width=config.target_width,
            target_height=config.target_height,
            input_name=config.input_name,
            output_name=config.output_name,
            mean=config.mean,
            std=config.std,
            inference_timeout=config.inference_timeout,
            debug_dump_path=config.debug_dump_path,
        )


class ClassificationResult(BaseModel, frozen=True):
    """Outcome of one classification call."""

    label: str
    predictions: list[ClassificationPrediction]
    image_width: int
    image_height: int


def _run_engine(
    context: ClassificationContext, tensor: NormalizedTensor
) -> EngineOutputs:
    inputs = {context.input_name: tensor}
    executor = context._executor
    if executor is None:
        return context.engine.run(inputs)

    # The engine call cannot be cancelled; on timeout it finishes in the background.
    future = executor.submit(context.engine.run, inputs)
    try:
        return future.result(timeout=context.inference_timeout)
    except TimeoutError as err:
        raise InferenceExecutionFailure(
            f"inference did not finish within {context.inference_timeout}s"
        ) from err


def _extract_scores(
    context: ClassificationContext, outputs: EngineOutputs
) -> NDArray[np.float32]:
    if context.output_name not in outputs:
        raise MissingOutputTensor(
            f"output '{context.output_name}' not in model results {sorted(outputs)}"
        )
    scores = np.asarray(outputs[context.output_name]).reshape(-1)
    if scores.size != len(context.labels):
        raise InferenceExecutionFailure(
            f"model produced {scores.size} scores for {len(context.labels)} labels"
        )
    return scores


def run(
    context: ClassificationContext, image_bytes: bytes, top_k: int = 1
) -> ClassificationResult:
    """Classify one encoded image and return the label with top-K predictions."""
    if top_k < 1:
        raise ValueError(f"top_k must be at least 1, got {top_k}")
    with pipeline_stage("decode"):
        decoded = decode_image(image_bytes)
    with pipeline_stage("resize"):
        cropped = resize_and_crop(decoded, context.target_width, context.target_height)
    if context.debug_dump_path is not None:
        with pipeline_stage("debug dump"):
            save_pixel_grid(cropped, context.debug_dump_path)
    with pipeline_stage("normalize"):
        tensor = build_tensor(cropped, context.mean, context.std)
    with pipeline_stage("inference"):
        outputs = _run_engine(context, tensor)
    with pipeline_stage("classify"):
        scores = _extract_scores(context, outputs)
        label = classify(scores, context.labels)
        predictions = top_k_predictions(scores, context.labels, top_k)

    logger.info(f"Predicted '{label}' ({predictions[0].confidence:.4f})")
    return ClassificationResult(
        label=label,
        predictions=predictions,
        image_width=decoded.width,
        image_height=decoded.height,
    )


def classify_image(context: ClassificationContext, image_bytes: bytes) -> str:
    """Return the label of the highest-scoring class for ``image_bytes``."""
    return run(context, image_bytes).label


def predict(
    context: ClassificationContext, image_bytes: bytes, top_k: int = 5
) -> list[ClassificationPrediction]:
    """Top-K predictions sorted by confidence descending."""
    return run(context, image_bytes, top_k=top_k).predictions
