"""
Image upload validation, decoding and working-resolution sampling.
"""
import io
import math
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union, BinaryIO

import numpy as np
from PIL import Image, UnidentifiedImageError

from ifire.config import SUPPORTED_EXTS
from ifire.errors import AnalysisUnavailable, DecodeError
from ifire.logging_utils import get_logger

logger = get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


class ImageUploadHandler:
    """Handles image upload, validation, and basic information extraction."""

    SUPPORTED_FORMATS = [ext.lstrip('.') for ext in SUPPORTED_EXTS]
    MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB in bytes

    @staticmethod
    def validate_image(uploaded_file, max_file_size: int = None) -> Tuple[bool, str]:
        """
        Validate uploaded image file.

        Args:
            uploaded_file: Object with ``name``, ``size`` and optionally
                ``type`` (a Streamlit UploadedFile qualifies)
            max_file_size: Byte limit, defaults to MAX_FILE_SIZE

        Returns:
            Tuple of (is_valid, error_message)
        """
        if uploaded_file is None:
            return False, "No file selected"

        limit = max_file_size or ImageUploadHandler.MAX_FILE_SIZE
        if uploaded_file.size == 0:
            return False, "The file is empty"
        if uploaded_file.size > limit:
            return False, f"File too large, please choose a file under {limit / 1024 / 1024:.0f}MB"

        mime_type = getattr(uploaded_file, 'type', None)
        if mime_type and not mime_type.startswith('image/'):
            return False, "Please upload an image file"

        file_extension = uploaded_file.name.rsplit('.', 1)[-1].lower() if '.' in uploaded_file.name else ''
        if file_extension not in ImageUploadHandler.SUPPORTED_FORMATS:
            return False, f"Unsupported format. Supported: {', '.join(ImageUploadHandler.SUPPORTED_FORMATS).upper()}"

        return True, ""

    @staticmethod
    def load_image(source: Union[bytes, BinaryIO]) -> Image.Image:
        """
        Decode an image from raw bytes or a file-like object.

        Args:
            source: Encoded image data

        Returns:
            Fully loaded PIL Image

        Raises:
            DecodeError: If the data is empty or not a readable image
        """
        if isinstance(source, (bytes, bytearray)):
            if not source:
                raise DecodeError("Image data is empty")
            stream = io.BytesIO(source)
        else:
            if hasattr(source, 'seek'):
                source.seek(0)
            stream = source

        try:
            image = Image.open(stream)
            image.load()  # force decoding now so truncated files fail here
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
            raise DecodeError(f"Unable to decode image: {e}") from e

        if image.width == 0 or image.height == 0:
            raise DecodeError("Image has zero width or height")
        return image

    @staticmethod
    def get_image_info(image: Image.Image, filename: str, file_size: int) -> Dict[str, Any]:
        """
        Extract basic information from the image.

        Args:
            image: PIL Image object
            filename: Original filename
            file_size: Size of the uploaded file in bytes

        Returns:
            Dictionary containing image information
        """
        return {
            'filename': filename,
            'width': image.width,
            'height': image.height,
            'channels': len(image.getbands()),
            'file_size': file_size,
            'color_mode': image.mode,
        }


@dataclass
class WorkingImage:
    """RGBA pixel buffer at working resolution."""
    pixels: np.ndarray  # HxWx4 uint8
    scale: float
    original_size: Tuple[int, int]  # (width, height)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


class PixelSampler:
    """Downscales images to a bounded working resolution."""

    def __init__(self, max_dimension: int = 600):
        self.max_dimension = max_dimension

    def working_size(self, width: int, height: int) -> Tuple[int, int, float]:
        """
        Compute the working-resolution size for an image.

        Args:
            width: Original width
            height: Original height

        Returns:
            Tuple of (working_width, working_height, scale)
        """
        scale = min(1.0, self.max_dimension / max(width, height))
        return round_half_up(width * scale), round_half_up(height * scale), scale

    def sample(self, image: Image.Image) -> WorkingImage:
        """
        Produce the RGBA buffer used for color analysis.

        Args:
            image: Decoded PIL image

        Returns:
            WorkingImage

        Raises:
            DecodeError: If the image has no pixels
            AnalysisUnavailable: If the buffer cannot be produced
        """
        width, height = image.size
        if width <= 0 or height <= 0:
            raise DecodeError("Image has zero width or height")

        new_width, new_height, scale = self.working_size(width, height)
        if new_width == 0 or new_height == 0:
            raise AnalysisUnavailable(f"Working image for {width}x{height} would be empty")

        try:
            rgba = image if image.mode == 'RGBA' else image.convert('RGBA')
            if (new_width, new_height) != (width, height):
                rgba = rgba.resize((new_width, new_height), Image.Resampling.LANCZOS)
            pixels = np.array(rgba, dtype=np.uint8)
        except (OSError, ValueError) as e:
            raise AnalysisUnavailable(f"Cannot read pixels: {e}") from e

        # Fully transparent pixels read back as black, never fire or smoke.
        pixels[pixels[:, :, 3] == 0, :3] = 0

        logger.debug("Sampled %dx%d image to %dx%d (scale %.3f)",
                     width, height, new_width, new_height, scale)
        return WorkingImage(pixels=pixels, scale=scale, original_size=(width, height))
