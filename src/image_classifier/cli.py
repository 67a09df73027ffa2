"""Command-line entrypoint: classify one image and print its label.

Usage:
    image-classifier                                  # defaults from conf/classify.yaml
    image-classifier image_file=cat.png               # another image from assets_dir
    image-classifier top_k=5 output_dir=results       # also write a JSON result

The label goes to stdout.  Failures print ``error: ...`` to stderr and exit
with the code of the error kind (see :mod:`image_classifier.errors`); invalid
configuration and unexpected failures exit with 1.
"""

import sys

import hydra
from loguru import logger
from omegaconf import DictConfig, OmegaConf
from pydantic import ValidationError

from image_classifier.config import ClassifierConfig
from image_classifier.errors import ClassificationError
from image_classifier.io.annotation import ClassificationAnnotationWriter
from image_classifier.io.resources import ResourceLoader
from image_classifier.pipeline import (
    ClassificationContext,
    ClassificationResult,
    pipeline_stage,
    run,
)
from image_classifier.schemas.annotation import ClassificationAnnotation
from image_classifier.schemas.info import AnnotationInfo


def setup_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


def write_annotation(
    config: ClassifierConfig,
    context: ClassificationContext,
    result: ClassificationResult,
    output_dir: str,
) -> None:
    """Persist ``result`` as ``{image_stem}.json`` under ``output_dir``."""
    annotation = ClassificationAnnotation(
        filename=config.image_file,
        categories=dict(enumerate(context.labels)),
        info=AnnotationInfo(
            onnx_file=config.onnx_file,
            image_width=result.image_width,
            image_height=result.image_height,
            input_width=context.target_width,
            input_height=context.target_height,
        ),
        predictions=result.predictions,
    )
    ClassificationAnnotationWriter(output_dir).write(annotation)


def execute(config: ClassifierConfig) -> int:
    """Run one classification and return the process exit code."""
    try:
        with pipeline_stage("open assets"):
            loader = ResourceLoader.from_location(config.assets_dir)
        context = ClassificationContext.from_config(config, loader=loader)
        with pipeline_stage("load image"):
            image_bytes = loader.load_image_bytes(config.image_file)
        try:
            result = run(context, image_bytes, top_k=config.top_k)
            if config.output_dir is not None:
                with pipeline_stage("write result"):
                    write_annotation(config, context, result, config.output_dir)
        finally:
            context.close()
    except ClassificationError as err:
        print(f"error: {err}", file=sys.stderr)
        return err.exit_code
    except Exception as err:
        logger.exception("Unexpected failure")
        print(f"error: {type(err).__name__}: {err}", file=sys.stderr)
        return 1

    print(result.label)
    return 0


@hydra.main(version_base=None, config_path="conf", config_name="classify")
def main(cfg: DictConfig) -> None:
    """Classify the configured image and exit with the run's status code."""
    raw = OmegaConf.to_container(cfg, resolve=True)
    try:
        config = ClassifierConfig(**raw)  # type: ignore[arg-type]
    except ValidationError as err:
        print(f"error: invalid configuration\n{err}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level)
    logger.debug(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")
    sys.exit(execute(config))


if __name__ == "__main__":
    main()
