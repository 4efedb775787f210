'''
# Windows Bitmap

A fixed 14 bytes file header is followed by an info header, whose first
field is its own length, used to tell apart the different versions.

    +-------------+
    | file header |  "BM", file length, reserved, offset of the pixels
    +-------------+
    | info header |  geometry and encoding of the image
    +-------------+
    | palette     |  only when the image is not 24 bits per pixel
    +-------------+
    | pixels      |  from img_offset up to the end of the file
    +-------------+

All the integers are little endian.

<https://en.wikipedia.org/wiki/BMP_file_format>
'''
import logging
import struct
from enum import Enum, auto

from rasterstruct.core import Chunk
from rasterstruct import fields
from rasterstruct.enum import Compliant
from rasterstruct.properties import Dependency
from rasterstruct.exceptions import InvalidEncodingException


logger = logging.getLogger(__name__)

BMP_MAGIC = b'BM'


class BMPCompression(Enum):
    NONE      = auto()
    RLE8      = auto()
    RLE4      = auto()
    BITFIELDS = auto()
    JPEG      = auto()
    PNG       = auto()


class CompressionField(fields.StructField):
    '''Only the run-length encodings have a code, the other kinds
    are written with the code 0xffffffff.'''
    CODES = {
        BMPCompression.NONE: 0,
        BMPCompression.RLE8: 1,
        BMPCompression.RLE4: 2,
    }
    UNKNOWN_CODE = 0xffffffff

    def __init__(self, **kwargs):
        super().__init__('I', default=BMPCompression.NONE, **kwargs)

    def _get_raw(self):
        code = self.value
        if isinstance(code, BMPCompression):
            code = self.CODES.get(code, self.UNKNOWN_CODE)

        return struct.pack(self.get_format(), code)

    def unpack(self, stream):
        code = self._unpack_struct(stream.read_exactly(self.size))

        for kind, kind_code in self.CODES.items():
            if kind_code == code:
                self.value = kind
                return

        if self.is_compliant(Compliant.ENUM):
            raise InvalidEncodingException(value=code, reason='unknown compression code')

        logger.warning('unknown compression code 0x%08x' % code)
        self.value = code


# discriminant (the length of the header) -> prototype of the header
INFO_HEADER_VARIANTS = {}


def register_info_header(cls):
    '''Class decorator making an info header available to BMPFile,
    the class must indicate its length with the LENGTH attribute.'''
    if cls.LENGTH in INFO_HEADER_VARIANTS:
        raise ValueError(f'an info header of length {cls.LENGTH} is already registered')

    INFO_HEADER_VARIANTS[cls.LENGTH] = cls()

    return cls


class BMPFileHeader(Chunk):
    signature  = fields.StringField(2, default=BMP_MAGIC, is_magic=True)
    length     = fields.StructField('I')  # size of the whole file
    reserved   = fields.StringField(4)
    img_offset = fields.StructField('I')


@register_info_header
class BitmapInfoHeader(Chunk):
    '''The BITMAPINFOHEADER: a negative height means the rows are stored top-down.'''
    LENGTH = 40

    length               = fields.StructField('I', default=LENGTH)
    px_width             = fields.StructField('i')
    px_height            = fields.StructField('i')
    planes               = fields.StructField('H', default=1)
    bits_per_pixel       = fields.StructField('H', default=24)
    compression          = CompressionField()
    img_size             = fields.StructField('I')
    res_horiz            = fields.StructField('i')  # pixels per metre
    res_vert             = fields.StructField('i')
    num_colors           = fields.StructField('I')
    num_important_colors = fields.StructField('I')


class PaletteField(fields.StringField):
    '''The color table: it's present only when the image is not 24 bits per pixel
    and its length is "num_colors" bytes. The value is None when absent.'''

    def __init__(self, **kwargs):
        super().__init__(Dependency('.info_header.value.num_colors'), **kwargs)

    def value_from_default(self):
        return self.default

    def is_present(self):
        info_header = self.father.info_header.value

        return info_header is not None and info_header.bits_per_pixel.value != 24

    def _get_size(self):
        return 0 if self.value is None else len(self.value)

    def _get_raw(self):
        return b'' if self.value is None else self.value

    def _update_value(self):
        if self.value is not None:
            super()._update_value()

    def unpack(self, stream):
        if not self.is_present():
            self.value = None
            return

        super().unpack(stream)


class BMPFile(Chunk):
    file_header = BMPFileHeader()
    info_header = fields.SelectField(fields.StructField('I'), INFO_HEADER_VARIANTS)
    palette     = PaletteField()
    pixels      = fields.PaddingField(offset=Dependency('.file_header.img_offset'))

    @classmethod
    def new(cls, info_header, pixels, palette=None, **kwargs):
        '''Build a bitmap, the offsets and the lengths are calculated.

        Without a palette an image that needs one gets an empty one.'''
        bmp = cls(**kwargs)
        bmp.info_header = info_header

        if info_header.bits_per_pixel.value != 24 and palette is None:
            palette = b''

        bmp.palette = palette
        bmp.pixels = pixels

        bmp.relayout()

        return bmp

    def relayout(self, offset=0):
        size = super().relayout(offset=offset)

        header = self.file_header
        header.img_offset.value = header.size + self.info_header.size + self.palette.size
        header.length.value = header.img_offset.value + self.pixels.size

        return size

    def serialize(self):
        return self.pack(relayout=False)
