"""
Pixel to meter calibration.

The scale is derived from a reference segment marked on the base image and a
real-world length typed by the user. Until a calibration is finalized every
unit conversion is unavailable.
"""

# ProTakeoff imports
from protakeoff.errors import InvalidInputError
from protakeoff.geometry_utils import distance
from protakeoff.materials import parse_decimal

# Standard library imports
import logging
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class Calibration:
    """
    Holds the pixels-per-meter factor of the current base image.

    Attributes:
        pixels_per_meter (float, optional): None until ``finalize`` succeeds.
        reference_px (float, optional): Pixel length of the last reference segment.
        reference_m (float, optional): Real length entered for the reference segment.
    """

    pixels_per_meter: Optional[float] = None
    reference_px: Optional[float] = None
    reference_m: Optional[float] = None

    @property
    def is_ready(self) -> bool:
        return self.pixels_per_meter is not None

    @staticmethod
    def capture(point_a, point_b) -> float:
        """Returns the pixel distance between the two reference points."""
        return distance(point_a, point_b)

    def finalize(self, pixel_distance: float, real_meters: Union[str, float]) -> float:
        """
        Sets the scale from a captured pixel distance and a real-world length.

        Args:
            pixel_distance: Length of the reference segment in pixels.
            real_meters: Real length in meters; strings accept ',' or '.' as decimal separator.

        Returns:
            float: The new pixels-per-meter factor.

        Raises:
            InvalidInputError: If ``real_meters`` is not a finite number greater than zero.
                               The current calibration is left unchanged.
        """
        meters = parse_decimal(real_meters)
        if meters <= 0:
            raise InvalidInputError(f"Real length must be greater than zero: {real_meters}")
        if pixel_distance <= 0:
            raise InvalidInputError("Reference segment has zero length")

        self.pixels_per_meter = pixel_distance / meters
        self.reference_px = pixel_distance
        self.reference_m = meters
        logger.info(f"Calibrated: {pixel_distance:.2f} px = {meters} m ({self.pixels_per_meter:.4f} px/m)")
        return self.pixels_per_meter

    def reset(self) -> None:
        self.pixels_per_meter = None
        self.reference_px = None
        self.reference_m = None
        logger.info("Calibration reset")

    def _require(self) -> float:
        if self.pixels_per_meter is None:
            raise RuntimeError("Calibration is not set")
        return self.pixels_per_meter

    def to_meters(self, pixels: float) -> float:
        return pixels / self._require()

    def to_square_meters(self, square_pixels: float) -> float:
        return square_pixels / self._require() ** 2
