import struct

import pytest

from rasterstruct.convert import (
    ConversionOptions,
    bits_per_pixel,
    bmp_to_png,
    color_type_from_bpp,
    png_to_bmp,
)
from rasterstruct.enum import Compliant
from rasterstruct.exceptions import (
    InvalidEncodingException,
    MissingChunkException,
    UnsupportedColorTypeException,
    UnrecognizedChunkTypeException,
)
from rasterstruct.images.bmp import (
    BitmapInfoHeader,
    BMPCompression,
    BMPFile,
)
from rasterstruct.images.png import (
    ChunkType,
    IHDRData,
    PHYSData,
    PNGChunk,
    PNGColorType,
    PNGFile,
    PNGUnitType,
)
from rasterstruct.images.png.utils import get_chunk_by_name, get_chunks_by_name


def build_bmp(width=4, height=2, bpp=24, palette=None, pixels=b'\xaa' * 24, res=(0, 0)):
    header = BitmapInfoHeader()
    header.px_width.value = width
    header.px_height.value = height
    header.bits_per_pixel.value = bpp
    header.res_horiz.value, header.res_vert.value = res

    return BMPFile.new(header, pixels, palette=palette)


def ihdr_of(png):
    return IHDRData(get_chunk_by_name(png.chunks, 'IHDR').data.value)


@pytest.mark.parametrize('color,depth,bpp', [
    (PNGColorType.GRAYSCALE, 1, 1),
    (PNGColorType.GRAYSCALE, 16, 16),
    (PNGColorType.RGB, 8, 24),
    (PNGColorType.RGB, 16, 48),
    (PNGColorType.RGB_PALETTE, 4, 8),
    (PNGColorType.GS_ALPHA, 8, 16),
    (PNGColorType.RGBA, 8, 32),
    (PNGColorType.RGBA, 16, 32),
])
def test_bits_per_pixel(color, depth, bpp):
    assert bits_per_pixel(color, depth) == bpp


@pytest.mark.parametrize('color', [1, 5, 7, 0xff])
def test_bits_per_pixel_unsupported(color):
    with pytest.raises(UnsupportedColorTypeException) as e:
        bits_per_pixel(color, 8)

    assert e.value.color_type == color
    assert e.value.bit_depth == 8


@pytest.mark.parametrize('bpp,palette,expected', [
    (1, None, (PNGColorType.GRAYSCALE, 1)),
    (2, None, (PNGColorType.GRAYSCALE, 2)),
    (4, None, (PNGColorType.GRAYSCALE, 4)),
    (8, None, (PNGColorType.GRAYSCALE, 8)),
    (8, b'', (PNGColorType.GRAYSCALE, 8)),
    (8, b'\x00\x00\xff', (PNGColorType.RGB_PALETTE, 8)),
    (8, b'\x01\x02', (PNGColorType.GRAYSCALE, 8)),
    (16, None, (PNGColorType.GRAYSCALE, 16)),
    (24, None, (PNGColorType.RGB, 8)),
    (32, None, (PNGColorType.RGBA, 8)),
    (48, None, (PNGColorType.RGB, 16)),
])
def test_color_type_from_bpp(bpp, palette, expected):
    assert color_type_from_bpp(bpp, palette) == expected


@pytest.mark.parametrize('bpp', [0, 3, 12, 64])
def test_color_type_from_bpp_unsupported(bpp):
    with pytest.raises(UnsupportedColorTypeException) as e:
        color_type_from_bpp(bpp)

    assert e.value.bits_per_pixel == bpp


def test_options():
    assert ConversionOptions().compliant == Compliant.STRICT
    assert not ConversionOptions(preserve_unknown_chunks=True).compliant & Compliant.REGISTRY
    assert ConversionOptions(preserve_unknown_chunks=True).compliant & Compliant.CRC


def test_png_to_bmp_rgb(ihdr_factory, chunk_factory, png_factory):
    png = PNGFile(png_factory(
        ihdr_factory(4, 2, 8, 2),
        chunk_factory(b'IDAT', b'abc'),
        chunk_factory(b'IDAT', b'def'),
        chunk_factory(b'IEND', b''),
    ))

    bmp = png_to_bmp(png)
    header = bmp.info_header.value

    assert header.px_width.value == 4
    assert header.px_height.value == 2
    assert header.bits_per_pixel.value == 24
    assert header.compression.value == BMPCompression.NONE
    assert header.img_size.value == 4 * 2 * 3
    assert header.num_colors.value == 2 ** 24

    assert bmp.palette.value is None
    assert bmp.file_header.img_offset.value == 54
    assert bmp.file_header.length.value == 54 + 6
    assert bmp.pixels.value == b'abcdef'

    data = bmp.serialize()

    assert len(data) == 60
    assert BMPFile(data) == bmp


def test_png_to_bmp_palette(ihdr_factory, chunk_factory, png_factory):
    plte = b'\xff\x00\x00\x00\xff\x00'
    png = PNGFile(png_factory(
        ihdr_factory(2, 2, 8, 3),
        chunk_factory(b'PLTE', plte),
        chunk_factory(b'IDAT', b'pixels'),
    ))

    bmp = png_to_bmp(png)

    assert bmp.info_header.value.bits_per_pixel.value == 8
    assert bmp.info_header.value.num_colors.value == 256
    assert len(bmp.palette.value) == 256
    assert bmp.palette.value[:6] == plte
    assert bmp.palette.value[6:] == b'\x00' * 250
    assert bmp.file_header.img_offset.value == 54 + 256

    other = BMPFile(bmp.serialize())

    assert other == bmp
    assert other.pixels.value == b'pixels'


def test_png_to_bmp_grayscale(ihdr_factory, chunk_factory, png_factory):
    png = PNGFile(png_factory(
        ihdr_factory(3, 3, 1, 0),
        chunk_factory(b'IDAT', b'\x00'),
    ))

    bmp = png_to_bmp(png)
    header = bmp.info_header.value

    assert header.bits_per_pixel.value == 1
    assert header.num_colors.value == 2
    assert header.img_size.value == 2
    assert bmp.palette.value == b'\x00\x00'
    assert bmp.file_header.img_offset.value == 56


@pytest.mark.parametrize('color,depth,bpp', [
    (6, 8, 32),
    (2, 16, 48),
])
def test_png_to_bmp_num_colors_overflow(ihdr_factory, chunk_factory, png_factory, color, depth, bpp):
    png = PNGFile(png_factory(
        ihdr_factory(1, 1, depth, color),
        chunk_factory(b'IDAT', b''),
    ))

    bmp = png_to_bmp(png)

    assert bmp.info_header.value.bits_per_pixel.value == bpp
    assert bmp.info_header.value.num_colors.value == 0
    assert bmp.palette.value == b''
    assert bmp.file_header.img_offset.value == 54


@pytest.mark.parametrize('color', [1, 5, 7])
def test_png_to_bmp_unsupported_color(ihdr_factory, chunk_factory, png_factory, color):
    png = PNGFile(png_factory(
        ihdr_factory(1, 1, 8, color),
        chunk_factory(b'IDAT', b''),
    ))

    with pytest.raises(UnsupportedColorTypeException) as e:
        png_to_bmp(png)

    assert e.value.color_type == color


def test_png_to_bmp_missing_ihdr(chunk_factory, png_factory):
    png = PNGFile(png_factory(chunk_factory(b'IDAT', b'')))

    with pytest.raises(MissingChunkException):
        png_to_bmp(png)


def test_png_to_bmp_resolution(ihdr_factory, chunk_factory, png_factory):
    def convert(unit):
        png = PNGFile(png_factory(
            ihdr_factory(1, 1, 8, 2),
            chunk_factory(b'pHYs', struct.pack('>IIB', 3780, 3779, unit)),
            chunk_factory(b'IDAT', b''),
        ))

        return png_to_bmp(png).info_header.value

    header = convert(1)

    assert header.res_horiz.value == 3780
    assert header.res_vert.value == 3779

    header = convert(0)

    assert header.res_horiz.value == 0
    assert header.res_vert.value == 0


@pytest.mark.parametrize('width,height', [
    (0x80000000, 1),
    (1, 0x80000000),
    (0xffffffff, 0xffffffff),
])
def test_png_to_bmp_geometry_too_big(ihdr_factory, chunk_factory, png_factory, width, height):
    png = PNGFile(png_factory(
        ihdr_factory(width, height, 8, 0),
        chunk_factory(b'IDAT', b''),
    ))

    with pytest.raises(InvalidEncodingException) as e:
        png_to_bmp(png)

    assert e.value.value == (width, height)


def test_png_to_bmp_image_size_too_big(ihdr_factory, chunk_factory, png_factory):
    png = PNGFile(png_factory(
        ihdr_factory(70000, 70000, 8, 2),
        chunk_factory(b'IDAT', b''),
    ))

    with pytest.raises(InvalidEncodingException) as e:
        png_to_bmp(png)

    assert e.value.value == 70000 * 70000 * 3

    # just below the limit it's fine
    png = PNGFile(png_factory(
        ihdr_factory(0x7fffffff, 1, 8, 0),
        chunk_factory(b'IDAT', b''),
    ))

    assert png_to_bmp(png).info_header.value.img_size.value == 0x7fffffff


def test_png_to_bmp_unknown_chunks(ihdr_factory, chunk_factory, png_factory):
    data = png_factory(
        ihdr_factory(1, 1, 8, 0),
        chunk_factory(b'prVt', b'private stuff'),
        chunk_factory(b'IDAT', b'\x00'),
    )
    options = ConversionOptions(preserve_unknown_chunks=True)
    png = PNGFile(data, compliant=options.compliant)

    with pytest.raises(UnrecognizedChunkTypeException) as e:
        png_to_bmp(png)

    assert e.value.value == b'prVt'

    bmp = png_to_bmp(png, options)

    assert bmp.pixels.value == b'\x00'


def test_png_to_bmp_from_pillow(pillow_image):
    png = PNGFile(pillow_image('RGB'))

    bmp = png_to_bmp(png)

    assert bmp.info_header.value.px_width.value == 5
    assert bmp.info_header.value.px_height.value == 3
    assert bmp.info_header.value.img_size.value == 45
    assert bmp.palette.value is None
    assert bmp.pixels.value == get_chunk_by_name(png.chunks, 'IDAT').data.value


def test_bmp_to_png_rgb():
    bmp = build_bmp()
    iend = PNGChunk.new(ChunkType(b'IEND'), b'')

    png = bmp_to_png(bmp, ConversionOptions(suffix_chunks=[iend]))

    assert [str(_.type.value) for _ in png.chunks] == ['IHDR', 'IDAT', 'IEND']

    ihdr = ihdr_of(png)

    assert ihdr.width.value == 4
    assert ihdr.height.value == 2
    assert ihdr.depth.value == 8
    assert ihdr.color.value == PNGColorType.RGB
    assert get_chunk_by_name(png.chunks, 'IDAT').data.value == b'\xaa' * 24

    # it's a valid PNG
    assert PNGFile(png.serialize()) == png


def test_bmp_to_png_palette():
    bmp = build_bmp(bpp=8, palette=b'\x01\x02\x03\x04\x05\x06\x07', pixels=b'\x00' * 8)

    png = bmp_to_png(bmp)

    assert [str(_.type.value) for _ in png.chunks] == ['IHDR', 'PLTE', 'IDAT']
    assert ihdr_of(png).color.value == PNGColorType.RGB_PALETTE
    assert get_chunk_by_name(png.chunks, 'PLTE').data.value == b'\x01\x02\x03\x04\x05\x06'


def test_bmp_to_png_palette_without_whole_entries():
    bmp = build_bmp(bpp=8, palette=b'\x01\x02', pixels=b'\x00' * 8)

    png = bmp_to_png(bmp)

    assert [str(_.type.value) for _ in png.chunks] == ['IHDR', 'IDAT']
    assert ihdr_of(png).color.value == PNGColorType.GRAYSCALE


def test_bmp_to_png_grayscale():
    bmp = build_bmp(bpp=8, pixels=b'\x00' * 8)

    png = bmp_to_png(bmp)

    assert [str(_.type.value) for _ in png.chunks] == ['IHDR', 'IDAT']
    assert ihdr_of(png).color.value == PNGColorType.GRAYSCALE
    assert ihdr_of(png).depth.value == 8


def test_bmp_to_png_prefix_and_resolution():
    bmp = build_bmp(height=-2, res=(2835, 2835))
    text = PNGChunk.new(ChunkType(b'tEXt'), b'Comment\x00miao')

    png = bmp_to_png(bmp, ConversionOptions(prefix_chunks=[text]))

    assert [str(_.type.value) for _ in png.chunks] == ['tEXt', 'IHDR', 'pHYs', 'IDAT']
    assert ihdr_of(png).height.value == 2

    phys = PHYSData(get_chunk_by_name(png.chunks, 'pHYs').data.value)

    assert phys.ppu_x.value == 2835
    assert phys.unit.value == PNGUnitType.METER


@pytest.mark.parametrize('width,height', [
    (0, 2),
    (-4, 2),
    (4, 0),
])
def test_bmp_to_png_bad_geometry(width, height):
    with pytest.raises(InvalidEncodingException):
        bmp_to_png(build_bmp(width=width, height=height))


def test_bmp_to_png_unsupported_bpp():
    with pytest.raises(UnsupportedColorTypeException) as e:
        bmp_to_png(build_bmp(bpp=12))

    assert e.value.bits_per_pixel == 12


def test_round_trip_metadata():
    bmp = build_bmp(bpp=32, pixels=b'\x01' * 32)

    other = png_to_bmp(bmp_to_png(bmp))

    for name in ('px_width', 'px_height', 'bits_per_pixel'):
        assert getattr(other.info_header.value, name) == getattr(bmp.info_header.value, name)

    assert other.pixels.value == bmp.pixels.value
    assert not get_chunks_by_name(bmp_to_png(bmp).chunks, 'PLTE')
