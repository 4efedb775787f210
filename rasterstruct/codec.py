'''
Entry points working on byte buffers: everything else (reading files,
printing errors) is left to the caller.
'''
import logging

from .convert import (
    ConversionOptions,
    bmp_to_png,
    png_to_bmp,
)
from .images.png import PNGFile
from .images.bmp import BMPFile


logger = logging.getLogger(__name__)


def parse_container(data, options=None) -> PNGFile:
    options = ConversionOptions() if options is None else options

    return PNGFile(data, compliant=options.compliant)


def serialize_container(png: PNGFile) -> bytes:
    return png.serialize()


def parse_flat_image(data) -> BMPFile:
    return BMPFile(data)


def serialize_flat_image(bmp: BMPFile) -> bytes:
    return bmp.serialize()


def convert_chunked_to_flat(png: PNGFile, options=None) -> BMPFile:
    return png_to_bmp(png, options=options)


def convert_flat_to_chunked(bmp: BMPFile, options=None) -> PNGFile:
    return bmp_to_png(bmp, options=options)
