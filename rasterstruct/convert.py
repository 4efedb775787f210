'''
Mapping between the PNG and the BMP models.

Only the metadata is translated: the pixels are copied as they are,
so the zlib stream of the IDAT chunks becomes the pixel payload of
the bitmap and vice versa.
'''
import logging

from .enum import Compliant
from .exceptions import (
    InvalidEncodingException,
    UnrecognizedChunkTypeException,
    UnsupportedColorTypeException,
)
from .images.png import (
    ChunkType,
    IHDRData,
    PHYSData,
    PNGChunk,
    PNGChunkKind,
    PNGColorType,
    PNGFile,
    PNGUnitType,
)
from .images.png.utils import (
    get_chunk_by_name,
    get_chunks_by_name,
    get_IDAT_data,
)
from .images.bmp import (
    BitmapInfoHeader,
    BMPCompression,
    BMPFile,
)


logger = logging.getLogger(__name__)

NUM_COLORS_MAX = 0xffffffff
RESOLUTION_MAX = 0x7fffffff
# px_width and px_height are signed, img_size is not
DIMENSION_MAX  = 0x7fffffff
IMG_SIZE_MAX   = 0xffffffff


class ConversionOptions(object):
    '''
     - preserve_unknown_chunks: chunks with a type outside the known ones are
       kept instead of failing the parsing, and dropped with a warning instead
       of failing the conversion to a bitmap
     - prefix_chunks/suffix_chunks: chunks put before the IHDR and after the IDAT
       when building a PNG (e.g. an IEND to terminate it)
    '''

    def __init__(self, preserve_unknown_chunks=False, prefix_chunks=(), suffix_chunks=()):
        self.preserve_unknown_chunks = preserve_unknown_chunks
        self.prefix_chunks = tuple(prefix_chunks)
        self.suffix_chunks = tuple(suffix_chunks)

    def __repr__(self):
        return '<%s(preserve_unknown_chunks=%s, prefix=%d, suffix=%d)>' % (
            self.__class__.__name__,
            self.preserve_unknown_chunks,
            len(self.prefix_chunks),
            len(self.suffix_chunks),
        )

    @property
    def compliant(self):
        '''The validation level to use when parsing a PNG.'''
        if self.preserve_unknown_chunks:
            return Compliant.ENUM | Compliant.MAGIC | Compliant.CRC

        return Compliant.STRICT


def bits_per_pixel(color_type, depth):
    if color_type == PNGColorType.GRAYSCALE:
        return depth
    if color_type == PNGColorType.RGB:
        return depth * 3
    if color_type == PNGColorType.RGB_PALETTE:
        return 8
    if color_type == PNGColorType.GS_ALPHA:
        return depth * 2
    if color_type == PNGColorType.RGBA:
        return 32

    raise UnsupportedColorTypeException(color_type=color_type, bit_depth=depth)


def color_type_from_bpp(bpp, palette=None):
    '''Returns the couple (color type, depth) for the given bits per pixel.'''
    if bpp in (1, 2, 4):
        return PNGColorType.GRAYSCALE, bpp
    if bpp == 8:
        # indexed only with at least one whole RGB entry
        if palette is not None and len(palette) >= 3:
            return PNGColorType.RGB_PALETTE, 8

        return PNGColorType.GRAYSCALE, 8
    if bpp == 16:
        return PNGColorType.GRAYSCALE, 16
    if bpp == 24:
        return PNGColorType.RGB, 8
    if bpp == 32:
        return PNGColorType.RGBA, 8
    if bpp == 48:
        return PNGColorType.RGB, 16

    raise UnsupportedColorTypeException(bits_per_pixel=bpp)


def _build_palette(png, num_colors):
    plte = get_chunks_by_name(png.chunks, 'PLTE')
    data = plte[0].data.value if plte else b''

    return data[:num_colors].ljust(num_colors, b'\x00')


def _resolution(png):
    '''Pixels per metre from the pHYs chunk, (0, 0) when not available.'''
    chunks = get_chunks_by_name(png.chunks, 'pHYs')
    if not chunks:
        return 0, 0

    phys = PHYSData(chunks[0].data.value, compliant=Compliant.NONE)
    if phys.unit.value != PNGUnitType.METER:
        return 0, 0

    x, y = phys.ppu_x.value, phys.ppu_y.value
    if x > RESOLUTION_MAX or y > RESOLUTION_MAX:
        logger.warning('resolution %dx%d too big for a bitmap, dropping it' % (x, y))
        return 0, 0

    return x, y


def _check_unknown_chunks(png, options):
    for chunk in png.chunks:
        chunk_type = chunk.type.value
        if chunk_type.kind != PNGChunkKind.UNRECOGNIZED:
            continue

        if not options.preserve_unknown_chunks:
            raise UnrecognizedChunkTypeException(value=bytes(chunk_type), reason='a bitmap has no place for it')

        logger.warning('dropping the chunk %s, a bitmap has no place for it' % chunk_type)


def png_to_bmp(png, options=None):
    options = ConversionOptions() if options is None else options

    _check_unknown_chunks(png, options)

    ihdr_chunk = get_chunk_by_name(png.chunks, 'IHDR')
    # the color is checked below, an unknown value is not an encoding problem here
    ihdr = IHDRData(ihdr_chunk.data.value, compliant=Compliant.NONE)

    width, height, depth = ihdr.width.value, ihdr.height.value, ihdr.depth.value
    bpp = bits_per_pixel(ihdr.color.value, depth)

    if width > DIMENSION_MAX or height > DIMENSION_MAX:
        raise InvalidEncodingException(value=(width, height), reason='the geometry doesn\'t fit a bitmap')

    img_size = (width * height * bpp + 7) // 8
    if img_size > IMG_SIZE_MAX:
        raise InvalidEncodingException(value=img_size, reason='the image size doesn\'t fit a bitmap')

    num_colors = 2 ** bpp
    if num_colors > NUM_COLORS_MAX:
        num_colors = 0

    logger.debug('converting %s PNG with color %s to %d bpp' % (ihdr, ihdr.color.value, bpp))

    info_header = BitmapInfoHeader()
    info_header.px_width.value = width
    info_header.px_height.value = height
    info_header.bits_per_pixel.value = bpp
    info_header.compression.value = BMPCompression.NONE
    info_header.img_size.value = img_size
    info_header.res_horiz.value, info_header.res_vert.value = _resolution(png)
    info_header.num_colors.value = num_colors

    palette = None if bpp == 24 else _build_palette(png, num_colors)

    return BMPFile.new(info_header, get_IDAT_data(png.chunks), palette=palette)


def bmp_to_png(bmp, options=None):
    options = ConversionOptions() if options is None else options

    info_header = bmp.info_header.value

    width, height = info_header.px_width.value, info_header.px_height.value
    if width <= 0 or height == 0:
        raise InvalidEncodingException(value=(width, height), reason='the image must have a positive width and a height')

    palette = bmp.palette.value or b''
    palette = palette[:len(palette) - len(palette) % 3]
    color_type, depth = color_type_from_bpp(info_header.bits_per_pixel.value, palette)

    ihdr = IHDRData()
    ihdr.width.value = width
    ihdr.height.value = abs(height)  # negative for top-down bitmaps
    ihdr.depth.value = depth
    ihdr.color.value = color_type

    chunks = list(options.prefix_chunks)
    chunks.append(PNGChunk.new(ChunkType(b'IHDR'), ihdr.pack()))

    if color_type == PNGColorType.RGB_PALETTE:
        chunks.append(PNGChunk.new(ChunkType(b'PLTE'), palette))

    res_horiz, res_vert = info_header.res_horiz.value, info_header.res_vert.value
    if res_horiz > 0 and res_vert > 0:
        phys = PHYSData()
        phys.ppu_x.value = res_horiz
        phys.ppu_y.value = res_vert
        phys.unit.value = PNGUnitType.METER
        chunks.append(PNGChunk.new(ChunkType(b'pHYs'), phys.pack()))

    chunks.append(PNGChunk.new(ChunkType(b'IDAT'), bmp.pixels.value))
    chunks.extend(options.suffix_chunks)

    return PNGFile.from_chunks(chunks)
