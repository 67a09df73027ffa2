"""End-to-end tests for the classification pipeline with stub engines."""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import numpy as np
import pytest
from PIL import Image
from pydantic import ValidationError

from image_classifier.config import ClassifierConfig
from image_classifier.errors import (
    InferenceExecutionFailure,
    InvalidImageDimensions,
    MissingOutputTensor,
    ModelLoadFailure,
    OutputWriteFailure,
    ResourceNotFound,
)
from image_classifier.inference.base import BaseInferenceEngine
from image_classifier.io.resources import ResourceLoader
from image_classifier.pipeline import (
    ClassificationContext,
    classify_image,
    pipeline_stage,
    predict,
    run,
)
from image_classifier.types import EngineOutputs


class _StubEngine(BaseInferenceEngine):
    """Returns fixed scores and records every input it receives."""

    def __init__(self, scores: list[float], output_name: str = "output0") -> None:
        self.scores = np.array([scores], dtype=np.float32)
        self.output_name = output_name
        self.calls: list[dict[str, np.ndarray]] = []

    def run(self, inputs: dict[str, np.ndarray]) -> EngineOutputs:
        self.calls.append(inputs)
        return {self.output_name: self.scores}


class _BlockingEngine(BaseInferenceEngine):
    def __init__(self) -> None:
        self.release = threading.Event()

    def run(self, inputs: dict[str, np.ndarray]) -> EngineOutputs:
        self.release.wait(timeout=5)
        return {"output0": np.zeros((1, 5), dtype=np.float32)}


def _context(
    engine: BaseInferenceEngine, labels: list[str], **kwargs: Any
) -> ClassificationContext:
    return ClassificationContext(engine=engine, labels=tuple(labels), **kwargs)


class TestClassifyImage:
    def test_solid_image_end_to_end(
        self, solid_image_bytes: bytes, labels: list[str]
    ) -> None:
        engine = _StubEngine([0.1, 0.3, 4.2, -1.0, 0.9])
        label = classify_image(_context(engine, labels), solid_image_bytes)

        assert label == "great white shark"
        assert len(engine.calls) == 1
        tensor = engine.calls[0]["images"]
        assert tensor.shape == (1, 3, 640, 640)
        assert tensor.dtype == np.float32
        # Solid image: every value within a channel plane is identical
        expected_r = (200 / 255 - 0.485) / 0.229
        np.testing.assert_allclose(tensor[0, 0], expected_r, atol=1e-6)

    def test_resizes_non_square_image(
        self, encode_image: Callable[..., bytes], labels: list[str]
    ) -> None:
        engine = _StubEngine([0.0, 1.0, 0.0, 0.0, 0.0])
        image = encode_image(Image.new("RGB", (300, 200), color=(0, 0, 0)))
        context = _context(engine, labels, target_width=32, target_height=32)

        assert classify_image(context, image) == "goldfish"
        assert engine.calls[0]["images"].shape == (1, 3, 32, 32)

    def test_custom_tensor_names(
        self, solid_image_bytes: bytes, labels: list[str]
    ) -> None:
        engine = _StubEngine([1.0, 0.0, 0.0, 0.0, 0.0], output_name="logits")
        context = _context(engine, labels, input_name="pixels", output_name="logits")
        assert classify_image(context, solid_image_bytes) == "tench"
        assert list(engine.calls[0]) == ["pixels"]

    def test_context_is_reusable(
        self, solid_image_bytes: bytes, labels: list[str]
    ) -> None:
        engine = _StubEngine([0.0, 0.0, 0.0, 0.0, 1.0])
        context = _context(engine, labels)
        results = {classify_image(context, solid_image_bytes) for _ in range(3)}
        assert results == {"hammerhead"}
        assert len(engine.calls) == 3


class TestRun:
    def test_result_carries_predictions_and_source_size(
        self, encode_image: Callable[..., bytes], labels: list[str]
    ) -> None:
        engine = _StubEngine([0.1, 0.3, 4.2, -1.0, 0.9])
        image = encode_image(Image.new("RGB", (96, 64)))
        result = run(
            _context(engine, labels, target_width=32, target_height=32), image, top_k=3
        )
        assert result.label == "great white shark"
        assert [p.class_id for p in result.predictions] == [2, 4, 1]
        assert (result.image_width, result.image_height) == (96, 64)

    def test_predict_top_k(self, solid_image_bytes: bytes, labels: list[str]) -> None:
        engine = _StubEngine([0.1, 0.3, 4.2, -1.0, 0.9])
        preds = predict(_context(engine, labels), solid_image_bytes, top_k=2)
        assert [p.label for p in preds] == ["great white shark", "hammerhead"]

    def test_debug_dump(
        self, solid_image_bytes: bytes, labels: list[str], tmp_path: Path
    ) -> None:
        dump = tmp_path / "debug" / "cropped.png"
        engine = _StubEngine([1.0, 0.0, 0.0, 0.0, 0.0])
        run(_context(engine, labels, debug_dump_path=dump), solid_image_bytes)
        with Image.open(dump) as img:
            assert img.size == (640, 640)


class TestStageErrors:
    def test_decode_failure(self, labels: list[str]) -> None:
        engine = _StubEngine([1.0] * 5)
        with pytest.raises(InvalidImageDimensions) as exc_info:
            classify_image(_context(engine, labels), b"\x00\x01garbage")
        assert exc_info.value.stage == "decode"
        assert engine.calls == []

    def test_crop_failure(
        self, encode_image: Callable[..., bytes], labels: list[str]
    ) -> None:
        engine = _StubEngine([1.0] * 5)
        context = _context(engine, labels, target_width=64, target_height=32)
        image = encode_image(Image.new("RGB", (50, 50)))
        with pytest.raises(InvalidImageDimensions) as exc_info:
            classify_image(context, image)
        assert exc_info.value.stage == "resize"

    def test_missing_output_tensor(
        self, solid_image_bytes: bytes, labels: list[str]
    ) -> None:
        engine = _StubEngine([1.0] * 5, output_name="something_else")
        with pytest.raises(MissingOutputTensor) as exc_info:
            classify_image(_context(engine, labels), solid_image_bytes)
        assert exc_info.value.stage == "classify"
        assert "output0" in str(exc_info.value)

    def test_score_label_length_mismatch(
        self, solid_image_bytes: bytes, labels: list[str]
    ) -> None:
        engine = _StubEngine([1.0, 2.0, 3.0])
        with pytest.raises(InferenceExecutionFailure, match="3 scores for 5 labels"):
            classify_image(_context(engine, labels), solid_image_bytes)

    def test_inference_timeout(
        self, solid_image_bytes: bytes, labels: list[str]
    ) -> None:
        engine = _BlockingEngine()
        context = _context(engine, labels, inference_timeout=0.05)
        try:
            with pytest.raises(InferenceExecutionFailure) as exc_info:
                classify_image(context, solid_image_bytes)
        finally:
            engine.release.set()
        assert exc_info.value.stage == "inference"
        assert "did not finish" in str(exc_info.value)

    def test_debug_dump_unknown_extension(
        self, solid_image_bytes: bytes, labels: list[str], tmp_path: Path
    ) -> None:
        engine = _StubEngine([1.0] * 5)
        context = _context(engine, labels, debug_dump_path=tmp_path / "dump")
        with pytest.raises(OutputWriteFailure) as exc_info:
            classify_image(context, solid_image_bytes)
        assert exc_info.value.stage == "debug dump"
        assert engine.calls == []

    def test_oversized_image(
        self,
        monkeypatch: pytest.MonkeyPatch,
        encode_image: Callable[..., bytes],
        labels: list[str],
    ) -> None:
        image = encode_image(Image.new("1", (64, 64)))
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
        with pytest.raises(InvalidImageDimensions) as exc_info:
            classify_image(_context(_StubEngine([1.0] * 5), labels), image)
        assert exc_info.value.stage == "decode"

    @pytest.mark.parametrize("top_k", [0, -1])
    def test_top_k_must_be_positive(
        self, solid_image_bytes: bytes, labels: list[str], top_k: int
    ) -> None:
        engine = _StubEngine([1.0] * 5)
        with pytest.raises(ValueError, match="top_k must be at least 1"):
            predict(_context(engine, labels), solid_image_bytes, top_k=top_k)
        assert engine.calls == []

    def test_error_message_names_stage(self) -> None:
        with pytest.raises(ResourceNotFound) as exc_info:
            with pipeline_stage("load labels"):
                raise ResourceNotFound("labels.txt missing")
        assert str(exc_info.value) == (
            "ResourceNotFound in stage 'load labels': labels.txt missing"
        )

    def test_inner_stage_is_kept(self) -> None:
        with pytest.raises(ResourceNotFound) as exc_info:
            with pipeline_stage("outer"):
                with pipeline_stage("inner"):
                    raise ResourceNotFound("gone")
        assert exc_info.value.stage == "inner"


class TestClassificationContext:
    def test_from_config(self, assets_dir: Path, labels: list[str]) -> None:
        received: list[bytes] = []

        def factory(model: bytes) -> BaseInferenceEngine:
            received.append(model)
            return _StubEngine([0.0] * 5)

        config = ClassifierConfig(assets_dir=str(assets_dir), target_width=224)
        context = ClassificationContext.from_config(config, engine_factory=factory)

        assert received == [b"not-a-real-model"]
        assert context.labels == tuple(labels)
        assert context.target_width == 224
        assert context.input_name == "images"

    def test_missing_labels(self, assets_dir: Path) -> None:
        config = ClassifierConfig(labels_file="missing.txt")
        with pytest.raises(ResourceNotFound) as exc_info:
            ClassificationContext.from_config(
                config, loader=ResourceLoader(assets_dir)
            )
        assert exc_info.value.stage == "load labels"

    def test_invalid_model_reported_as_load_failure(self, assets_dir: Path) -> None:
        config = ClassifierConfig(assets_dir=str(assets_dir))
        with pytest.raises(ModelLoadFailure) as exc_info:
            ClassificationContext.from_config(config)
        assert exc_info.value.stage == "load model"

    def test_frozen(self, labels: list[str]) -> None:
        context = _context(_StubEngine([0.0] * 5), labels)
        with pytest.raises(ValidationError):
            context.labels = ("other",)  # type: ignore[misc]

    def test_requires_labels(self) -> None:
        with pytest.raises(ValidationError):
            _context(_StubEngine([]), [])

    def test_timed_calls_reuse_worker_thread(
        self, solid_image_bytes: bytes, labels: list[str]
    ) -> None:
        threads: list[threading.Thread] = []

        class _RecordingEngine(_StubEngine):
            def run(self, inputs: dict[str, np.ndarray]) -> EngineOutputs:
                threads.append(threading.current_thread())
                return super().run(inputs)

        context = _context(
            _RecordingEngine([0.0, 1.0, 0.0, 0.0, 0.0]), labels, inference_timeout=5
        )
        try:
            for _ in range(3):
                assert classify_image(context, solid_image_bytes) == "goldfish"
        finally:
            context.close()
        assert len(set(threads)) == 1
        assert threads[0] is not threading.main_thread()
