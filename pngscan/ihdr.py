from __future__ import annotations
from typing import NamedTuple
import struct


# Colour type -> samples per pixel. See the IHDR section of the PNG spec.
CHANNELS_PER_COLOUR_TYPE = {
    0: 1,  # greyscale
    2: 3,  # truecolour
    3: 1,  # indexed-colour
    4: 2,  # greyscale with alpha
    6: 4,  # truecolour with alpha
}


class ImageDescriptor(NamedTuple):
    """
    The image metadata a scan-line layout depends on.

    bits_per_pixel is bit depth multiplied by the number of channels,
    so a 1-bit greyscale image has 1 and an 8-bit RGBA image has 32.
    """
    width: int
    height: int
    bits_per_pixel: int
    interlaced: bool = False

    @classmethod
    def from_ihdr(cls, ihdr: IHDRData) -> ImageDescriptor:
        return cls(
            width=ihdr.width,
            height=ihdr.height,
            bits_per_pixel=ihdr.bits_per_pixel,
            interlaced=ihdr.interlaced,
        )

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    def validate(self) -> ImageDescriptor:
        """
        Raises:
            ValueError: Width or height is not positive, or bits_per_pixel is outside 1..64.
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive. Got {self.width}x{self.height}"
            )
        if not 1 <= self.bits_per_pixel <= 64:
            raise ValueError(
                f"Bits per pixel must be in 1..64. Got {self.bits_per_pixel}"
            )
        return self


class IHDRData(NamedTuple):
    width: int
    height: int
    bit_depth: int
    colour_type: int
    compression_method: int
    filter_method: int
    interlace_method: int

    def __bytes__(self) -> bytes:
        return struct.pack(">IIBBBBB", *self)

    @classmethod
    def from_bytes(cls, data: bytes) -> IHDRData:
        return cls(*struct.unpack(">IIBBBBB", data))

    @property
    def channels_per_pixel(self) -> int:
        if self.colour_type not in CHANNELS_PER_COLOUR_TYPE:
            raise ValueError(f"Unknown colour type: {self.colour_type}")
        return CHANNELS_PER_COLOUR_TYPE[self.colour_type]

    @property
    def bits_per_pixel(self) -> int:
        return self.bit_depth * self.channels_per_pixel

    @property
    def interlaced(self) -> bool:
        return self.interlace_method == 1

    @property
    def descriptor(self) -> ImageDescriptor:
        return ImageDescriptor.from_ihdr(self)
