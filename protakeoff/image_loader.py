"""Load a floor plan (raster image or first page of a PDF) as a pixel array."""

# ProTakeoff imports
from protakeoff import config
from protakeoff.shapes import ImageState

# Standard library imports
import logging
from pathlib import Path
from typing import Tuple, Union

# Third-party imports
import fitz  # PyMuPDF
import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

RASTER_SUFFIXES = {'.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff', '.gif', '.webp'}


def _load_raster(path: Path) -> np.ndarray:
    with Image.open(path) as pil_img:
        return np.array(pil_img.convert('RGB'), dtype=np.uint8)


def _render_pdf_first_page(path: Path, zoom: float) -> np.ndarray:
    """Rasterize page 1 of a PDF at ``zoom`` times its nominal size."""
    doc = fitz.open(str(path))
    try:
        if len(doc) == 0:
            raise ValueError(f"PDF has no pages: {path}")
        if len(doc) > 1:
            logger.info(f"{path.name} has {len(doc)} pages; only the first is used")
        pix = doc[0].get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        img = np.frombuffer(pix.samples, dtype=np.uint8).reshape(pix.height, pix.width, pix.n)
        return img[:, :, :3].copy()
    finally:
        doc.close()


def load_plan(path: Union[Path, str], pdf_zoom: float = config.PDF_RENDER_ZOOM) -> Tuple[np.ndarray, ImageState]:
    """
    Loads a floor plan for tracing.

    Args:
        path: Raster image (.png, .jpg, ...) or PDF file.
        pdf_zoom: Render zoom for PDFs.

    Returns:
        tuple: (pixels, image_state) where pixels is an (H, W, 3) uint8 array
               and image_state carries the pixel dimensions.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file type is not supported.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Plan not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.pdf':
        pixels = _render_pdf_first_page(path, pdf_zoom)
    elif suffix in RASTER_SUFFIXES:
        pixels = _load_raster(path)
    else:
        raise ValueError(f"Unsupported plan format: {suffix}")

    height, width = pixels.shape[:2]
    logger.info(f"Loaded plan {path.name}: {width}x{height} px")
    return pixels, ImageState(source=path, width=width, height=height)
