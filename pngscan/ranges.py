from __future__ import annotations
from typing import Generator
import logging

from pngscan.adam7 import (
    ADAM7_PASSES,
    FIRST_PASS,
    adam7_pass,
    next_pass,
    pass_is_empty,
    pass_pixels,
    pass_rows,
)
from pngscan.ihdr import ImageDescriptor


logger = logging.getLogger(__name__)

LineRange = tuple[int, int | None]


class ScanLineLayoutError(ValueError):
    """The buffer length does not match the scan-line layout of the image."""


def line_length(pixels: int, bits_per_pixel: int) -> int:
    # Pixel bytes are rounded up to a whole byte, plus the leading filter byte.
    return (pixels * bits_per_pixel + 7) // 8 + 1


class ScanLineRanges:
    """
    Iterator over the scan-line locations of an image's decompressed data stream.

    Yields (byte_length, pass_number) per scan line, where byte_length includes the
    filter byte and pass_number is the Adam7 pass (1-7) or None for non-interlaced images.
    The sequence ends when the byte count given at construction is used up.

    Passes with no pixels or no rows are never visited, since an encoder writes no
    scan lines for them. For images narrower than 5 pixels this skips pass 2 straight
    to pass 3 row 4, and for images shorter than 5 pixels pass 3 to pass 4 row 0.

    Raises:
        ScanLineLayoutError: The byte count runs out partway through a scan line,
                             or bytes remain after the last scan line of the image.
    """

    def __init__(self, descriptor: ImageDescriptor, length: int) -> None:
        self.descriptor = descriptor.validate()
        self.width = descriptor.width
        self.height = descriptor.height
        self.bits_per_pixel = descriptor.bits_per_pixel
        self.left = length
        self.lines = 0
        self.row = 0
        # (pass number, 0-indexed row within the image), None once pass 7 is done
        self.pass_cursor: tuple[int, int] | None = (FIRST_PASS, 0) if descriptor.interlaced else None
        self._broken = False
        logger.debug(
            f"Scan-line ranges for {self.width}x{self.height}, {self.bits_per_pixel} bpp, "
            f"interlaced={descriptor.interlaced}, {length} bytes"
        )

    def __iter__(self) -> ScanLineRanges:
        return self

    def __next__(self) -> LineRange:
        if self.left == 0 or self._broken:
            raise StopIteration

        if self.descriptor.interlaced:
            pixels_per_line, current_pass = self._next_interlaced()
        else:
            # Standard, non-interlaced scan lines
            if self.row >= self.height:
                self._fail(f"{self.left} bytes remain after all {self.height} rows")
            self.row += 1
            pixels_per_line, current_pass = self.width, None

        length = line_length(pixels_per_line, self.bits_per_pixel)
        if length > self.left:
            self._fail(f"scan line {self.lines} needs {length} bytes but only {self.left} remain")

        self.left -= length
        self.lines += 1
        return length, current_pass

    def _next_interlaced(self) -> tuple[int, int]:
        if self.pass_cursor is None:
            self._fail(f"{self.left} bytes remain after the last Adam7 pass")

        pass_number, row = self.pass_cursor
        while pass_is_empty(self.width, self.height, pass_number):
            logger.debug(f"Skipping empty Adam7 pass {pass_number} for {self.width}x{self.height}")
            following = next_pass(pass_number)
            if following is None:
                self.pass_cursor = None
                self._fail(f"{self.left} bytes remain after the last Adam7 pass")
            pass_number, row = following

        adam7 = adam7_pass(pass_number)
        pixels_per_line = pass_pixels(self.width, pass_number)

        if row + adam7.vert_step >= self.height:
            self.pass_cursor = next_pass(pass_number)
            logger.debug(f"Adam7 pass {pass_number} done after {self.lines + 1} scan lines")
        else:
            self.pass_cursor = pass_number, row + adam7.vert_step

        return pixels_per_line, pass_number

    def _fail(self, reason: str):
        self._broken = True
        message = (
            f"Buffer does not match a {self.width}x{self.height} image at "
            f"{self.bits_per_pixel} bits per pixel: {reason}"
        )
        logger.debug(message)
        raise ScanLineLayoutError(message)


def scan_line_lengths(descriptor: ImageDescriptor) -> Generator[LineRange, None, None]:
    """
    The complete (byte_length, pass_number) sequence for an image, worked out from
    its dimensions alone, without a buffer to measure against.
    """
    descriptor.validate()
    if not descriptor.interlaced:
        length = line_length(descriptor.width, descriptor.bits_per_pixel)
        for _ in range(descriptor.height):
            yield length, None
        return

    for adam7 in ADAM7_PASSES:
        if pass_is_empty(descriptor.width, descriptor.height, adam7.number):
            continue
        length = line_length(pass_pixels(descriptor.width, adam7.number), descriptor.bits_per_pixel)
        for _ in range(pass_rows(descriptor.height, adam7.number)):
            yield length, adam7.number


def expected_length(descriptor: ImageDescriptor) -> int:
    """Number of bytes the decompressed data stream of the image must hold."""
    return sum(length for length, _ in scan_line_lengths(descriptor))
