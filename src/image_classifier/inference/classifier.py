"""Map model scores to labels."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from image_classifier.errors import InferenceExecutionFailure, LabelIndexOutOfRange
from image_classifier.schemas.annotation import ClassificationPrediction


def softmax(logits: NDArray[np.floating]) -> NDArray[np.float64]:
    """Softmax over the last axis."""
    logits = np.asarray(logits, dtype=np.float64)
    exp = np.exp(logits - logits.max(axis=-1, keepdims=True))
    return exp / exp.sum(axis=-1, keepdims=True)


def _as_score_vector(scores: ArrayLike) -> NDArray[np.float64]:
    """Flatten ``[N]`` or ``[1, N]`` model output into a 1-D vector."""
    vector = np.asarray(scores, dtype=np.float64).reshape(-1)
    if vector.size == 0:
        raise InferenceExecutionFailure("model returned an empty score vector")
    return vector


def _label_at(labels: Sequence[str], index: int) -> str:
    if index >= len(labels):
        raise LabelIndexOutOfRange(
            f"class index {index} has no label ({len(labels)} labels loaded)"
        )
    return labels[index]


def classify(scores: ArrayLike, labels: Sequence[str]) -> str:
    """Return the label of the highest raw score.

    Ties resolve to the lowest index.  No softmax is applied; arg-max is
    invariant to it.
    """
    index = int(np.argmax(_as_score_vector(scores)))
    return _label_at(labels, index)


def top_k_predictions(
    scores: ArrayLike, labels: Sequence[str], k: int
) -> list[ClassificationPrediction]:
    """Top ``k`` classes by score with softmax confidences.

    Ordering uses the raw scores with a stable sort, so the first entry is
    always the :func:`classify` result.
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    vector = _as_score_vector(scores)
    probs = softmax(vector)
    order = np.argsort(-vector, kind="stable")[:k]
    return [
        ClassificationPrediction(
            class_id=int(idx),
            label=_label_at(labels, int(idx)),
            confidence=float(probs[idx]),
        )
        for idx in order
    ]
