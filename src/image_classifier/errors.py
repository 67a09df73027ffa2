"""Exception hierarchy for the classification pipeline.

Every error is terminal for the request that raised it.  The pipeline
records the failing stage on the exception before it propagates, and the
CLI maps each kind to a fixed process exit code:

    ResourceNotFound            2
    InvalidImageDimensions      3
    UnsupportedPixelFormat      4
    ModelLoadFailure            5
    InferenceExecutionFailure   6
    MissingOutputTensor         7
    LabelIndexOutOfRange        8
    OutputWriteFailure          9

Anything else that escapes the pipeline exits with 1.
"""

from __future__ import annotations


class ClassificationError(Exception):
    """Base class for all pipeline errors."""

    exit_code: int = 1

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        if self.stage is None:
            return self.message
        return f"{self.kind} in stage '{self.stage}': {self.message}"


class ResourceNotFound(ClassificationError):
    """Model, labels or image could not be found or is empty."""

    exit_code = 2


class InvalidImageDimensions(ClassificationError):
    """Image could not be decoded, or resize/crop geometry is impossible."""

    exit_code = 3


class UnsupportedPixelFormat(ClassificationError):
    exit_code = 4


class ModelLoadFailure(ClassificationError):
    exit_code = 5


class InferenceExecutionFailure(ClassificationError):
    """Engine-level failure: shape mismatch, runtime error, timeout."""

    exit_code = 6


class MissingOutputTensor(ClassificationError):
    exit_code = 7


class LabelIndexOutOfRange(ClassificationError):
    exit_code = 8


class OutputWriteFailure(ClassificationError):
    """Debug dump or result file could not be written."""

    exit_code = 9
