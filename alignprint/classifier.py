"""Quantizing classifiers reading rectangular regions of the integral image.

Each classifier pairs a Haar-like filter with a 3-threshold quantizer,
following the Chromaprint design:

- https://oxygene.sk/2011/01/how-does-chromaprint-work/

Filter kinds (``x`` is time, ``y`` is pitch class):

    0  whole rectangle
    1  upper half vs lower half (rows)
    2  newer half vs older half (time)
    3  checkerboard: diagonal quadrants against each other
    4  middle third vs outer thirds (rows)
    5  middle third vs outer thirds (time)

The two partial areas ``a`` and ``b`` are compared as
``log(1 + a) - log(1 + b)``.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import CHROMA_BINS
from .integral_image import IntegralImage


def subtract_log(a: float, b: float) -> float:
    """Compare two areas on a log scale.

    Areas at or below -1 have no logarithm and yield NaN, which every
    quantizer maps to its top level.
    """
    if a <= -1.0 or b <= -1.0:
        return math.nan
    return math.log1p(a) - math.log1p(b)


class Filter(BaseModel):
    """Rectangular Haar-like filter over the integral image.

    Attributes:
        kind: Filter shape (0-5, see module docstring)
        y: First chroma row covered
        height: Number of chroma rows covered
        width: Number of time columns covered
    """

    model_config = ConfigDict(frozen=True)

    kind: int = Field(ge=0, le=5)
    y: int = Field(ge=0)
    height: int = Field(ge=1)
    width: int = Field(ge=1)

    @model_validator(mode="after")
    def _check_rows(self) -> Filter:
        if self.y + self.height > CHROMA_BINS:
            raise ValueError(
                f"Filter rows [{self.y}, {self.y + self.height}) exceed {CHROMA_BINS} chroma bins"
            )
        return self

    def apply(self, image: IntegralImage, offset: int = 0) -> float:
        """Evaluate the filter on the ``width`` columns ending at ``offset``.

        Args:
            image: Integral image holding at least ``width + offset`` columns
            offset: Distance of the filter's newest column from the image's newest

        Raises:
            ValueError: If the filter cannot fit the image's retained capacity
        """
        if self.width + offset > image.capacity:
            raise ValueError(
                f"Filter width {self.width} (offset {offset}) exceeds integral "
                f"image capacity {image.capacity}"
            )

        x, y, w, h = 0, self.y, self.width, self.height

        def area(x1: int, y1: int, x2: int, y2: int) -> float:
            # x is measured from the oldest column of the filter's span
            if x2 <= x1 or y2 <= y1:
                return 0.0
            return image.range_sum(y1, y2, offset + w - x2, x2 - x1)

        if self.kind == 0:
            a = area(x, y, x + w, y + h)
            b = 0.0
        elif self.kind == 1:
            h_2 = h // 2
            a = area(x, y + h_2, x + w, y + h)
            b = area(x, y, x + w, y + h_2)
        elif self.kind == 2:
            w_2 = w // 2
            a = area(x + w_2, y, x + w, y + h)
            b = area(x, y, x + w_2, y + h)
        elif self.kind == 3:
            w_2 = w // 2
            h_2 = h // 2
            a = area(x, y + h_2, x + w_2, y + h) + area(x + w_2, y, x + w, y + h_2)
            b = area(x, y, x + w_2, y + h_2) + area(x + w_2, y + h_2, x + w, y + h)
        elif self.kind == 4:
            h_3 = h // 3
            a = area(x, y + h_3, x + w, y + 2 * h_3)
            b = area(x, y, x + w, y + h_3) + area(x, y + 2 * h_3, x + w, y + h)
        else:
            w_3 = w // 3
            a = area(x + w_3, y, x + 2 * w_3, y + h)
            b = area(x, y, x + w_3, y + h) + area(x + 2 * w_3, y, x + w, y + h)

        return subtract_log(a, b)


class Quantizer(BaseModel):
    """Bucket a real value into one of four ordinal levels."""

    model_config = ConfigDict(frozen=True)

    t0: float
    t1: float
    t2: float

    @model_validator(mode="after")
    def _check_order(self) -> Quantizer:
        if not self.t0 <= self.t1 <= self.t2:
            raise ValueError(f"Quantizer thresholds must be ordered: {self.t0}, {self.t1}, {self.t2}")
        return self

    def quantize(self, value: float) -> int:
        # NaN fails every comparison and lands on level 3
        if value < self.t1:
            return 0 if value < self.t0 else 1
        return 2 if value < self.t2 else 3


class Classifier(BaseModel):
    """A filter and the quantizer reducing its response to 2 bits."""

    model_config = ConfigDict(frozen=True)

    filter: Filter
    quantizer: Quantizer

    @property
    def width(self) -> int:
        return self.filter.width

    def classify(self, image: IntegralImage, offset: int = 0) -> int:
        return self.quantizer.quantize(self.filter.apply(image, offset))


def classifier(kind: int, y: int, height: int, width: int, t0: float, t1: float, t2: float) -> Classifier:
    """Compact constructor used by the built-in profile tables."""
    return Classifier(
        filter=Filter(kind=kind, y=y, height=height, width=width),
        quantizer=Quantizer(t0=t0, t1=t1, t2=t2),
    )
