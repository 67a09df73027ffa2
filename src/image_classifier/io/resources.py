"""Load model bytes, labels and images from a directory or package data."""

from __future__ import annotations

import re
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path

from loguru import logger

from image_classifier.errors import ResourceNotFound

PACKAGE_SCHEME = "package://"

# Only these end a label line; other Unicode separators stay inside the label.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class ResourceLoader:
    """Read named resources below a root location.

    The root is anything implementing ``Traversable``: a plain
    :class:`~pathlib.Path` or the result of ``importlib.resources.files``.

    Args:
        root: Directory the resource names are resolved against.
    """

    def __init__(self, root: Traversable) -> None:
        self.root = root

    @classmethod
    def from_location(cls, location: str) -> ResourceLoader:
        """Create a loader from a path or a ``package://module/subdir`` string."""
        if not location.startswith(PACKAGE_SCHEME):
            return cls(Path(location))

        module, _, subdir = location[len(PACKAGE_SCHEME) :].partition("/")
        try:
            root = resources.files(module)
        except ModuleNotFoundError as err:
            raise ResourceNotFound(f"package '{module}' is not installed") from err
        parts = [p for p in subdir.split("/") if p]
        if parts:
            root = root.joinpath(*parts)
        return cls(root)

    def read_bytes(self, name: str) -> bytes:
        """Return the full contents of resource ``name``.

        Raises:
            ResourceNotFound: The resource is missing, unreadable or empty.
        """
        resource = self.root / name
        if not resource.is_file():
            raise ResourceNotFound(f"resource '{name}' not found under {self.root}")
        try:
            data = resource.read_bytes()
        except OSError as err:
            raise ResourceNotFound(f"resource '{name}' could not be read: {err}") from err
        if not data:
            raise ResourceNotFound(f"resource '{name}' is empty")
        logger.debug(f"Read {len(data)} bytes from '{name}'")
        return data

    def load_labels(self, name: str) -> tuple[str, ...]:
        """Load a newline-separated label list; line order defines class index.

        Lines end at LF, CRLF or CR only; empty lines are dropped.
        """
        raw = self.read_bytes(name)
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as err:
            raise ResourceNotFound(f"labels '{name}' are not valid UTF-8") from err
        labels = tuple(line for line in _LINE_BREAK.split(text) if line)
        if not labels:
            raise ResourceNotFound(f"labels '{name}' contain no entries")
        logger.info(f"Loaded {len(labels)} labels from '{name}'")
        return labels

    def load_model_bytes(self, name: str) -> bytes:
        data = self.read_bytes(name)
        logger.info(f"Loaded model '{name}' ({len(data)} bytes)")
        return data

    def load_image_bytes(self, name: str) -> bytes:
        return self.read_bytes(name)
