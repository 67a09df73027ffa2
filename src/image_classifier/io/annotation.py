"""Persist classification results as JSON using orjson."""

from __future__ import annotations

from pathlib import Path

import orjson
from loguru import logger

from image_classifier.errors import OutputWriteFailure
from image_classifier.schemas.annotation import ClassificationAnnotation

_JSON_OPTIONS = orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS | orjson.OPT_SORT_KEYS


class ClassificationAnnotationWriter:
    """Write the result for each classified image to ``{image_stem}.json``.

    Args:
        output_dir: Target directory, created on first use.
    """

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    def path_for(self, filename: str) -> Path:
        return self.output_dir / f"{Path(filename).stem}.json"

    def write(self, annotation: ClassificationAnnotation) -> Path:
        """Serialize ``annotation`` and return the written path.

        Raises:
            OutputWriteFailure: The directory or file could not be written.
        """
        out_path = self.path_for(annotation.filename)
        data = orjson.dumps(annotation.model_dump(), option=_JSON_OPTIONS)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            out_path.write_bytes(data)
        except OSError as err:
            raise OutputWriteFailure(f"could not write {out_path}: {err}") from err
        logger.info(f"Wrote classification result to {out_path}")
        return out_path
