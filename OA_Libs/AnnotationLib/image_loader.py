"""
Image ingestion for the annotation canvas.

Images are decoded with Pillow to capture their true bitmap size (not a display
scale). Decoding can run synchronously or on a background worker; background
decodes are represented by ImageDecodeTask, which the session resolves on the
UI thread.

Classes:
    ImageDescriptor: Decoded image content and metadata
    ImageDecodeTask: Handle to an in-flight background decode
    ImageDecoder: Single-worker background decoder

Functions:
    decode_image_bytes: Decode raw bytes into an ImageDescriptor
    decode_data_url: Decode a ``data:image/...;base64,`` URL
    load_image_file: Read and decode an image file
    is_supported_format: Check a path's extension against supported formats
"""

import base64
import binascii
import concurrent.futures
import logging
import mimetypes
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Callable, Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from OA_Libs.constants import IMAGE_MIME_PREFIX, SUPPORTED_STANDARD_IMAGES

logger = logging.getLogger(__name__)


class ImageLoadError(ValueError):
    """Raised when an upload is not an image or cannot be decoded."""


@dataclass(frozen=True)
class ImageDescriptor:
    """A decoded image.

    Attributes:
        src: Raw encoded file content
        name: File name used in the export
        width: Bitmap width in pixels
        height: Bitmap height in pixels
        mime_type: MIME type of ``src``
    """
    src: bytes = field(repr=False)
    name: str
    width: int
    height: int
    mime_type: str = "image/png"

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.src).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def to_reference(self, image_index: int) -> dict:
        """Lightweight reference stored in scene snapshots instead of the bytes."""
        return {
            "image_index": image_index,
            "name": self.name,
            "width": self.width,
            "height": self.height,
        }


def is_supported_format(file_path: Path) -> bool:
    return Path(file_path).suffix.lower() in SUPPORTED_STANDARD_IMAGES


def guess_mime_type(name: str) -> str:
    mime_type, _ = mimetypes.guess_type(name)
    return mime_type or "application/octet-stream"


def decode_image_bytes(data: bytes, name: str, mime_type: Optional[str] = None) -> ImageDescriptor:
    """
    Decode image bytes and capture the bitmap size.

    Args:
        data: Encoded image content
        name: Original file name
        mime_type: Declared MIME type; guessed from ``name`` when omitted

    Returns:
        ImageDescriptor with the decoded width/height

    Raises:
        ImageLoadError: If the MIME type is not ``image/*`` or decoding fails
    """
    declared = mime_type or guess_mime_type(name)
    if not declared.startswith(IMAGE_MIME_PREFIX):
        raise ImageLoadError("Please upload an image file")

    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            width, height = img.size
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageLoadError(f"Error reading the image file: {e}") from e

    return ImageDescriptor(src=bytes(data), name=name, width=int(width), height=int(height), mime_type=declared)


def decode_data_url(data_url: str, name: str) -> ImageDescriptor:
    """Decode a base64 ``data:`` URL as produced by a browser file reader."""
    header, sep, payload = str(data_url).partition(",")
    if not sep or not header.startswith("data:") or ";base64" not in header:
        raise ImageLoadError("Unsupported data URL")

    mime_type = header[len("data:"):].split(";", 1)[0]
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageLoadError(f"Error reading the image file: {e}") from e

    return decode_image_bytes(data, name, mime_type=mime_type)


def load_image_file(file_path: Union[str, Path]) -> ImageDescriptor:
    """
    Read and decode an image file from disk.

    Raises:
        ImageLoadError: If the file is missing, not an image, or undecodable
    """
    path = Path(file_path)
    if not path.is_file():
        raise ImageLoadError(f"Image file not found: {path}")

    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageLoadError(f"Error reading the image file: {e}") from e

    return decode_image_bytes(data, path.name)


class ImageDecodeTask:
    """
    Handle to a background decode.

    The task resolves exactly once, to either a descriptor or an error message.
    There is no timeout: a stalled decode simply never completes. ``cancel``
    is a hook for callers that want to drop a pending decode.
    """

    def __init__(self, future: "concurrent.futures.Future[ImageDescriptor]", name: str) -> None:
        self._future = future
        self.name = name

    @property
    def done(self) -> bool:
        return self._future.done()

    @property
    def cancelled(self) -> bool:
        return self._future.cancelled()

    def cancel(self) -> bool:
        return self._future.cancel()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the decode finishes. Returns False on timeout."""
        done, _ = concurrent.futures.wait([self._future], timeout=timeout)
        return bool(done)

    def outcome(self) -> Tuple[Optional[ImageDescriptor], Optional[str]]:
        """
        Return ``(descriptor, None)`` on success or ``(None, message)`` on failure.

        Raises:
            RuntimeError: If the task has not finished yet
        """
        if not self._future.done():
            raise RuntimeError(f"Decode of {self.name} is still running")
        if self._future.cancelled():
            return None, f"Loading {self.name} was cancelled"

        error = self._future.exception()
        if error is None:
            return self._future.result(), None
        if isinstance(error, ImageLoadError):
            return None, str(error)
        return None, f"Error reading the image file: {error}"

    def add_done_callback(self, callback: Callable[["ImageDecodeTask"], None]) -> None:
        """Run ``callback(task)`` when the decode finishes (on the worker thread)."""
        self._future.add_done_callback(lambda _future: callback(self))


class ImageDecoder:
    """Decodes images on a single background worker."""

    def __init__(self, max_workers: int = 1) -> None:
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="image-decode",
        )

    def submit_file(self, file_path: Union[str, Path]) -> ImageDecodeTask:
        path = Path(file_path)
        logger.debug(f"Queued decode of {path}")
        return ImageDecodeTask(self._executor.submit(load_image_file, path), path.name)

    def submit_bytes(self, data: bytes, name: str, mime_type: Optional[str] = None) -> ImageDecodeTask:
        logger.debug(f"Queued decode of {name} ({len(data)} bytes)")
        return ImageDecodeTask(self._executor.submit(decode_image_bytes, data, name, mime_type), name)

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)
