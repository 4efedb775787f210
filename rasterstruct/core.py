"""
The Chunk: a Field made of other fields, declared as class attributes.

    class Record(Chunk):
        length = fields.StructField('I')
        data   = fields.StringField(Dependency('.length'))

A Chunk can be a field of another Chunk, this is how a whole file is described.
"""
import logging
from typing import Tuple, List, Dict

from .fields import Field, check_offset
from .meta import MetaChunk
from .streams import Stream
from .exceptions import (
    RasterstructException,
    TruncatedException,
)
from .properties import get_root_from_chunk


logger = logging.getLogger(__name__)


class Chunk(Field, metaclass=MetaChunk):
    """
    Passing the data to the constructor unpacks it, otherwise the chunk is
    built from the defaults of its fields and relayouted.

    The value of a chunk is the chunk itself: the data lives in its fields.
    """

    def __init__(self, data=None, **kwargs):
        super().__init__(**kwargs)

        if data is None:
            self.relayout()
            return

        stream = data if isinstance(data, Stream) else Stream(data)
        logger.debug('unpacking \'%s\' from %r' % (self.__class__.__name__, stream))
        self.unpack(stream)

    def get_fields(self) -> List[Tuple[str, Field]]:
        '''Couples (name, field instance) in the order of declaration.'''
        return [(name, getattr(self, name)) for name in self._meta.fields]

    def __repr__(self):
        inner = ','.join('%s=%r' % (name, field) for name, field in self.get_fields())
        return '<%s(%s)>' % (self.__class__.__name__, inner)

    def __str__(self):
        return ''.join('%s: %s\n' % (name, field) for name, field in self.get_fields())

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented

        return all(field == getattr(other, name) for name, field in self.get_fields())

    def init(self):
        for _, field in self.get_fields():
            field.init()

    def _get_value(self):
        return self

    def _set_value(self, value):
        raise AttributeError(f'cannot set the value of the chunk {self.__class__.__name__}, set its fields')

    @property
    def root(self):
        return get_root_from_chunk(self)

    def _get_size(self):
        return sum(field.size for _, field in self.get_fields())

    @property
    def fixed_size(self):
        '''Known only if no field is placed explicitly and all have a fixed size.'''
        size = 0
        for _, field in self.get_fields():
            if field.explicit_offset is not None or field.fixed_size is None:
                return None
            size += field.fixed_size

        return size

    def _get_raw(self):
        return self.pack(relayout=False)

    @property
    def layout(self) -> Dict[str, Tuple[int, int]]:
        return {name: (field.offset, field.size) for name, field in self.get_fields()}

    def relayout(self, offset=0):
        '''First the fields take their place one after the other, then the
        values derived from other fields (lengths, checksums) are updated.'''
        self.offset = offset

        size = 0
        for name, field in self.get_fields():
            logger.debug('relayouting %s.%s at %d' % (self.__class__.__name__, name, offset + size))
            size += field.relayout(offset=offset + size)

        for _, field in self.get_fields():
            field._update_value()

        return size

    def pack(self, stream=None, relayout=True):
        '''
        Returns the encoded chunk (also written into the stream if one is passed).

        With relayout=False the fields are written as they are: packing a chunk
        just unpacked gives back the same bytes.
        '''
        if relayout:
            self.relayout()

        stream = Stream(b'') if stream is None else stream

        for name, field in self.get_fields():
            offset = field.resolve_offset()
            if offset is not None:
                stream.seek(offset)

            logger.debug('packing %s.%s at offset %08x' % (self.__class__.__name__, name, stream.tell()))
            field.pack(stream=stream, relayout=False)

        return stream.getvalue()

    def unpack(self, stream):
        '''The fields are read in order, each one from the end of the previous or
        from its explicit offset.

        When the size is known in advance it's checked upfront, so a short
        buffer is reported as such before looking at the content.

        An exception raised by a field gets its name appended to the chain.
        '''
        self.offset = stream.tell()

        fixed_size = self.fixed_size
        if fixed_size is not None and stream.remaining() < fixed_size:
            raise TruncatedException(offset=self.offset, needed=fixed_size, available=stream.remaining())

        for name, field in self.get_fields():
            logger.debug('unpacking %s.%s' % (self.__class__.__name__, name))

            try:
                offset = field.resolve_offset()
                if offset is None:
                    offset = stream.tell()
                else:
                    check_offset(stream, offset)
                    stream.seek(offset)

                field.unpack(stream)
            except RasterstructException as e:
                e.chain.append(name)
                raise

            field.offset = offset
