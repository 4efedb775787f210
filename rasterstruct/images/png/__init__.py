'''
# Portable Network Graphics

The file is a fixed signature followed by chunks, each one made of a big endian
length, a four letters type, the data and a CRC-32 of type and data.
'''
import logging
import struct
from enum import Enum

from bitstring import Bits

from rasterstruct.core import Chunk
from rasterstruct import (
    fields,
)
from rasterstruct.enum import Compliant
from rasterstruct.properties import Dependency
from rasterstruct.common import crc
from rasterstruct.streams import Stream
from rasterstruct.exceptions import (
    InvalidEncodingException,
    TruncatedException,
    UnrecognizedChunkTypeException,
)


logger = logging.getLogger(__name__)

PNG_MAGIC = b'\x89\x50\x4e\x47\x0d\x0a\x1a\x0a'


class PNGColorType(Enum):
    '''Only these combinations are valid, the values are not a bitmask
    even if they look like one (1 and 5 are not defined).'''
    GRAYSCALE = 0x00
    RGB       = 0x02
    RGB_PALETTE = 0x03
    GS_ALPHA    = 0x04
    RGBA        = 0x06


class PNGCompressionType(Enum):
    DEFLATE = 0x00


class PNGFilterType(Enum):
    ADAPTIVE = 0x00


class PNGInterlaceType(Enum):
    NONE  = 0x00
    ADAM7 = 0x01


class PNGUnitType(Enum):
    UNKNOWN = 0x00
    METER   = 0x01


class PNGChunkKind(Enum):
    '''The chunk types we know about, anything else is UNRECOGNIZED.'''
    IHDR = b'IHDR'
    PLTE = b'PLTE'
    IDAT = b'IDAT'
    IEND = b'IEND'
    cHRM = b'cHRM'
    gAMA = b'gAMA'
    iCCP = b'iCCP'
    sBIT = b'sBIT'
    sRGB = b'sRGB'
    bKGD = b'bKGD'
    hIST = b'hIST'
    tRNS = b'tRNS'
    pHYs = b'pHYs'
    sPLT = b'sPLT'
    tIME = b'tIME'
    iTXt = b'iTXt'
    tEXt = b'tEXt'
    zTXt = b'zTXt'
    eXIf = b'eXIf'
    UNRECOGNIZED = b''

    @classmethod
    def _missing_(cls, value):
        return cls.UNRECOGNIZED


class ChunkType(object):
    '''Four ASCII letters; bit 5 of each letter (i.e. its case) encodes a property:

     1. ancillary bit: uppercase means critical
     2. private bit: uppercase means public
     3. reserved bit: must be uppercase for a valid type
     4. safe-to-copy bit: lowercase means safe to copy
    '''
    PROPERTY_BIT = 2  # 0x20 is the third bit starting from the most significant

    def __init__(self, code: bytes):
        self.code = bytes(code)

    @classmethod
    def parse(cls, code: bytes) -> "ChunkType":
        code = bytes(code)
        if len(code) != 4 or not code.isalpha():
            raise InvalidEncodingException(value=code, reason='a chunk type must be 4 ASCII letters')

        return cls(code)

    @classmethod
    def from_text(cls, text: str) -> "ChunkType":
        if len(text) != 4 or not (text.isascii() and text.isalpha()):
            raise InvalidEncodingException(value=text, reason='a chunk type must be 4 ASCII letters')

        return cls(text.encode('ascii'))

    def __repr__(self):
        return f'<{self.__class__.__name__}({self})>'

    def __str__(self):
        return self.code.decode('ascii')

    def __bytes__(self):
        return self.code

    def __eq__(self, other):
        if not isinstance(other, ChunkType):
            return NotImplemented

        return self.code == other.code

    def __hash__(self):
        return hash(self.code)

    def _property_bit(self, idx):
        return Bits(bytes=self.code)[idx * 8 + self.PROPERTY_BIT]

    def is_critical(self):
        return not self._property_bit(0)

    def is_public(self):
        return not self._property_bit(1)

    def is_reserved_bit_valid(self):
        return not self._property_bit(2)

    def is_safe_to_copy(self):
        return self._property_bit(3)

    def is_valid(self):
        '''The letters are checked at construction, here only the reserved bit matters.'''
        return self.is_reserved_bit_valid()

    @property
    def kind(self):
        return PNGChunkKind(self.code)


class ChunkTypeField(fields.Field):
    '''The type of a chunk, its value is a ChunkType.

    An unknown type raises UnrecognizedChunkTypeException unless the registry
    compliance is relaxed: in that case the chunk is kept as it is.'''

    def __str__(self):
        return str(self.value)

    def _get_size(self):
        return 4

    @property
    def fixed_size(self):
        return 4

    def _get_raw(self):
        return b'\x00' * 4 if self.value is None else bytes(self.value)

    def unpack(self, stream):
        chunk_type = ChunkType.parse(stream.read_exactly(4))

        if chunk_type.kind is PNGChunkKind.UNRECOGNIZED:
            logger.warning('chunk type \'%s\' is not recognized' % chunk_type)
            if self.is_compliant(Compliant.REGISTRY):
                raise UnrecognizedChunkTypeException(value=chunk_type.code, reason='unknown chunk type')

        self.value = chunk_type


class IHDRData(Chunk):
    '''The payload of the IHDR chunk: the depth is in bits per sample (or per
    palette index), the bits per pixel depend also on the color type.'''
    width       = fields.StructField('I', endianess=fields.Endianess.BIG_ENDIAN)
    height      = fields.StructField('I', endianess=fields.Endianess.BIG_ENDIAN)
    depth       = fields.StructField('B', default=8)
    color       = fields.StructField('B', enum=PNGColorType, default=PNGColorType.GRAYSCALE)
    compression = fields.StructField('B', enum=PNGCompressionType, default=PNGCompressionType.DEFLATE)
    filter      = fields.StructField('B', enum=PNGFilterType, default=PNGFilterType.ADAPTIVE)
    interlace   = fields.StructField('B', enum=PNGInterlaceType, default=PNGInterlaceType.NONE)

    def __str__(self):
        return '%dx%dx%d' % (
            self.width.value,
            self.height.value,
            self.depth.value,
        )


class PHYSData(Chunk):
    '''Intended pixel size or aspect ratio.'''
    ppu_x = fields.StructField('I', endianess=fields.Endianess.BIG_ENDIAN)
    ppu_y = fields.StructField('I', endianess=fields.Endianess.BIG_ENDIAN)
    unit  = fields.StructField('B', enum=PNGUnitType, default=PNGUnitType.UNKNOWN)


class PNGHeader(Chunk):
    magic = fields.StringField(8, default=PNG_MAGIC, is_magic=True)


class PNGChunk(Chunk):
    '''A record of the file: the length counts only the data, the crc covers
    type and data. The payload is kept as bytes, IHDRData and PHYSData can
    decode the ones we need.

    Parsing fails with TruncatedException when the record doesn't fit the
    buffer, before looking at its type.
    '''
    length = fields.StructField('I', endianess=fields.Endianess.BIG_ENDIAN)
    type   = ChunkTypeField()
    data   = fields.StringField(Dependency('.length'))
    crc    = crc.CRCField(['type', 'data'], endianess=fields.Endianess.BIG_ENDIAN)  # network byte order

    @classmethod
    def new(cls, chunk_type, data, **kwargs):
        '''Build a chunk from type and payload, length and crc are calculated.'''
        chunk = cls(**kwargs)
        chunk.type.value = chunk_type
        chunk.data.value = data
        chunk.relayout()

        return chunk

    @classmethod
    def parse(cls, data, **kwargs):
        '''Returns the chunk found at the start of data and the number of bytes it takes.'''
        stream = Stream(data)
        chunk = cls(**kwargs)
        chunk.unpack(stream)

        return chunk, stream.tell()

    def serialize(self):
        return self.pack(relayout=False)

    def isCritical(self):
        return self.type.value.is_critical()

    def unpack(self, stream):
        # the whole record must be there before looking at its contents
        available = stream.remaining()
        if available >= self.length.size:
            length, = struct.unpack('>I', stream.peek(self.length.size))
            needed = self.length.size + self.type.size + length + self.crc.size
            if available < needed:
                raise TruncatedException(offset=stream.tell(), needed=needed, available=available)

        super().unpack(stream)


class PNGFile(Chunk):
    header = PNGHeader()
    chunks = fields.ArrayField(PNGChunk())

    @classmethod
    def from_chunks(cls, chunks, **kwargs):
        png = cls(**kwargs)
        for chunk in chunks:
            png.chunks.append(chunk)

        return png

    def serialize(self):
        return self.pack(relayout=False)
