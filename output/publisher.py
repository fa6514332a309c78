"""
Publishing encoded audio as a resolvable reference string.
"""

import hashlib
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

from models.constants import Constants, CacheConstants
from models.errors import CachedReferenceInvalid, PublishFailure

logger = logging.getLogger(Constants.LOGGER_NAME)


class ResourcePublisher(ABC):
    """Turns a byte stream into a reference string and back."""

    @abstractmethod
    def publish(self, data: bytes, mime_type: str) -> str:
        """
        Publish data and return a reference to it.

        Raises:
            PublishFailure: If the data cannot be published
        """

    @abstractmethod
    def resolve(self, ref: str) -> str:
        """
        Resolve a reference to a local path.

        Raises:
            CachedReferenceInvalid: If the reference does not resolve
        """

    def unpublish(self, ref: str) -> None:
        """Release a previously published reference. The default keeps it."""


class FilePublisher(ResourcePublisher):
    """Publishes byte streams as files and references them with file:// URIs."""

    def __init__(self, publish_dir: str):
        """
        Initialize the publisher.

        Args:
            publish_dir: Directory receiving published files
        """
        self.publish_dir = os.path.expanduser(publish_dir)

    def publish(self, data: bytes, mime_type: str) -> str:
        extension = CacheConstants.MIME_EXTENSIONS.get(mime_type.lower())
        if extension is None:
            raise PublishFailure(f"Unsupported MIME type: {mime_type}")

        digest = hashlib.sha256(data).hexdigest()[:16]
        path = Path(self.publish_dir) / f"noise_{digest}{extension}"

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = path.with_suffix(path.suffix + ".tmp")
            temp_path.write_bytes(data)
            os.replace(temp_path, path)
        except OSError as e:
            raise PublishFailure(f"Error writing {path}: {e}") from e

        ref = path.resolve().as_uri()
        logger.info(f"Published {len(data)} bytes as {ref}")
        return ref

    def resolve(self, ref: str) -> str:
        parsed = urlparse(ref)
        if parsed.scheme != "file":
            raise CachedReferenceInvalid(ref, f"unsupported scheme '{parsed.scheme}'")

        path = url2pathname(parsed.path)
        if not os.path.isfile(path):
            raise CachedReferenceInvalid(ref, "file not found")
        return path

    def unpublish(self, ref: str) -> None:
        """Delete a published file if it still exists."""
        try:
            path = self.resolve(ref)
        except CachedReferenceInvalid:
            return
        try:
            os.remove(path)
            logger.info(f"Removed published file {path}")
        except OSError as e:
            logger.warning(f"Could not remove published file {path}: {e}")
