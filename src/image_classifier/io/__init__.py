"""Resource loading, image codec and annotation output."""

from image_classifier.io.annotation import ClassificationAnnotationWriter
from image_classifier.io.image import decode_image, save_pixel_grid
from image_classifier.io.resources import ResourceLoader

__all__ = [
    "ClassificationAnnotationWriter",
    "ResourceLoader",
    "decode_image",
    "save_pixel_grid",
]
