"""
The building blocks of a format. A field is read from a Stream by unpack()
and encoded back by pack(), relayout() places it after the previous one.

The validation is driven by the Compliant flags: a failed check raises when the
field (or the closest father with an explicit level) requires it, otherwise
it's only logged.
"""
import logging
import struct
from enum import Enum, Flag, auto

from .enum import Compliant
from .meta import FieldBase, Endianess
from .properties import Dependency
from .streams import Stream
from .exceptions import (
    RasterstructException,
    InvalidEncodingException,
    MagicException,
    TruncatedException,
    UnsupportedVariantException,
)


logger = logging.getLogger(__name__)


class Field(FieldBase):
    """Base class to subclass from.

    The "offset" argument allows to place the field at a given position of the
    stream (an integer or a Dependency resolving to one), otherwise the field is
    found right after the previous one."""

    def __init__(self, name=None, father=None, default=None, offset=None,
                 endianess=Endianess.LITTLE_ENDIAN, compliant=Compliant.INHERIT, is_magic=False):
        super().__init__()
        self.name = name
        self.father = father
        self.default = default
        self.explicit_offset = offset
        self.offset = None
        self.endianess = endianess
        self.compliant = compliant
        self.is_magic = is_magic

        self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def __str__(self):
        return str(self.value)

    def __repr__(self):
        return '<%s(%r)>' % (self.__class__.__name__, self.value)

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented

        return self.value == other.value

    def is_compliant(self, level):
        '''Returns True if the field must be strict with respect to the given level'''
        instance = self
        while instance is not None:
            if instance.compliant & level:
                return True
            if not instance.compliant & Compliant.INHERIT:
                return False

            instance = instance.father

        return bool(Compliant.STRICT & level)

    def resolve_offset(self):
        if isinstance(self.explicit_offset, Dependency):
            return self.explicit_offset.resolve(self)

        return self.explicit_offset

    def _get_value(self):
        return self._value

    def _set_value(self, value) -> None:
        self._value = value

    value = property(
        fget=lambda self: self._get_value(),
        fset=lambda self, value: self._set_value(value))

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    @property
    def fixed_size(self):
        '''The size known before looking at the data, None if it depends on it.'''
        return None

    def _get_raw(self) -> bytes:
        raise NotImplementedError(f"method {self.__class__.__name__}._get_raw() not implemented")

    def _set_raw(self, raw: bytes) -> None:
        self.unpack(Stream(raw))

    raw = property(
        fget=lambda self: self._get_raw(),
        fset=lambda self, value: self._set_raw(value),
    )

    def relayout(self, offset=0):
        self.offset = offset

        return self.size

    def _update_value(self):
        '''This is used to update the values depending on this field before packing'''
        pass

    def pack(self, stream=None, relayout=True):
        if relayout:
            self.relayout()

        stream = Stream(b'') if stream is None else stream
        stream.write(self.raw)

        return stream.getvalue()

    def unpack(self, stream):
        raise NotImplementedError('you need to implement this in the subclass')


class StructField(Field):
    """
    An integer encoded with the struct module, "format" is a struct format
    character and the byte order comes from "endianess".

    With "enum" the value is the member of that Enum subclass, an unknown
    integer is an InvalidEncodingException (or kept as it is when ENUM is relaxed).
    """

    def __init__(self, format, default=0, enum=None, **kw):
        self.format = format
        self.enum = enum
        super().__init__(default=default, **kw)

    def __repr__(self):
        if isinstance(self.value, (Enum, bytes)):
            return f'<{self.__class__.__name__}({self.value!r})>'

        return '<%s(%s)>' % (self.__class__.__name__, hex(self.value))

    def __str__(self):
        if isinstance(self.value, Enum):
            return self.value.name
        if self.format == 'c':
            return self.value.decode('latin1')
        width = self.size * 2  # we want to be as large as possible
        return '0x%0*x' % (width, self.value)

    def value_from_default(self):
        if not self.enum:
            return super().value_from_default()

        return self.enum(self.default)

    def get_format(self):
        return '%s%s' % ('<' if self.endianess == Endianess.LITTLE_ENDIAN else '>', self.format)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    @property
    def fixed_size(self):
        return self.size

    def _get_raw(self) -> bytes:
        value = self.value
        if isinstance(value, Enum):
            value = value.value

        return struct.pack(self.get_format(), value)

    def _unpack_struct(self, raw: bytes):
        return struct.unpack(self.get_format(), raw)[0]

    def _unpack_enum(self, value: int):
        try:
            return self.enum(value)
        except ValueError:
            if self.is_compliant(Compliant.ENUM):
                raise InvalidEncodingException(value=value, reason=f'not a member of {self.enum.__name__}')

            logger.warning(f'enum {self.enum!r} doesn\'t have element with value 0x{value:x} in it')

            return value

    def unpack(self, stream):
        offset = stream.tell()
        value = self._unpack_struct(stream.read_exactly(self.size))

        if self.enum:
            value = self._unpack_enum(value)

        if self.is_magic and value != self.value_from_default():
            logger.warning('the magic doesn\'t correspond')
            if self.is_compliant(Compliant.MAGIC):
                raise MagicException(offset=offset, expected=self.value_from_default(), found=value)

        self.value = value


class StringField(Field):
    """Represent a contiguous chunk of bytes.

    The length is fixed via "n" (or implied by the default) or is given by
    a Dependency to the field containing it."""

    def __init__(self, n=None, **kw):
        if n is None and 'default' not in kw:
            raise ValueError("StringField must have 'n' or 'default' indicated!")

        self._length = n if n is not None else len(kw['default'])

        super().__init__(**kw)

    def __len__(self):
        return len(self.value)

    @property
    def length(self):
        if isinstance(self._length, Dependency):
            if self.father is None:
                return len(self.value)

            return self._length.resolve(self)

        return self._length

    def value_from_default(self):
        if self.default is not None:
            return self.default

        return b'' if isinstance(self._length, Dependency) else b'\x00' * self._length

    def _set_value(self, value) -> None:
        """A fixed length is enforced, a length bound to another field is written
        back there by relayout()."""
        if value is not None:
            value = bytes(value)
            if not isinstance(self._length, Dependency) and len(value) != self._length:
                raise ValueError(f'you are trying to set a value with the wrong size (that is {self._length} bytes)')

        self._value = value

    def _get_size(self):
        return len(self.value)

    @property
    def fixed_size(self):
        return None if isinstance(self._length, Dependency) else self._length

    def _get_raw(self):
        return self.value

    def _update_value(self):
        if isinstance(self._length, Dependency):
            self._length.resolve_and_set(self, len(self.value))

    def unpack(self, stream):
        offset = stream.tell()
        value = stream.read_exactly(self.length)

        if self.is_magic and value != self.default:
            logger.warning('the magic doesn\'t correspond')
            if self.is_compliant(Compliant.MAGIC):
                raise MagicException(offset=offset, expected=self.default, found=value)

        self.value = value


class ArrayField(Field):
    '''A list of elements, each one a copy of the prototype "field_cls".

    You can indicate an explicit number of elements via the parameter named "n"
    (an integer or a Dependency), or you can indicate with a callable returning True
    which element is the terminator for the list via the parameter named "canary".
    Without both the elements are read until the end of the stream.

    It supports indexing, len() and iteration over the elements.
    '''

    def __init__(self, field_cls, n=None, canary=None, **kw):
        self.field_cls = field_cls
        if n is not None and not isinstance(n, (int, Dependency)):
            raise ValueError('n is \'%s\' must be of the right type' % n.__class__.__name__)

        self._n = n
        self._canary = canary

        super().__init__(**kw)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.value!r})>'

    def __getitem__(self, item):
        return self.value[item]

    def __len__(self):
        return len(self.value)

    def __iter__(self):
        return iter(self.value)

    @property
    def n(self):
        if isinstance(self._n, Dependency):
            if self.father is None:
                return len(self.value)

            return self._n.resolve(self)

        return self._n

    def value_from_default(self):
        n = self._n if isinstance(self._n, int) else 0

        return [self.instance_element() for _ in range(n)]

    def instance_element(self):
        return self.field_cls.create(father=self)

    def append(self, element):
        element.father = self
        self.value.append(element)

    def clear(self):
        self.value.clear()

    def _get_size(self):
        return sum(element.size for element in self.value)

    def _get_raw(self):
        return b''.join(element.raw for element in self.value)

    def relayout(self, offset=0):
        self.offset = offset
        size = 0
        for element in self.value:
            size += element.relayout(offset=offset + size)

        return size

    def _update_value(self):
        if isinstance(self._n, Dependency):
            self._n.resolve_and_set(self, len(self.value))

    def _is_over(self, stream, n):
        if n is not None:
            return len(self.value) >= n

        return stream.remaining() == 0

    def unpack(self, stream):
        self.value = []
        n = self.n

        while not self._is_over(stream, n):
            element = self.instance_element()
            offset = stream.tell()
            logger.debug('unpacking element %d of \'%s\' at offset %d' % (len(self.value), self.name, offset))

            try:
                element.unpack(stream)
            except RasterstructException as e:
                e.chain.append(str(len(self.value)))
                raise

            element.offset = offset
            self.value.append(element)

            if self._canary and self._canary(element):
                break


class SelectField(Field):
    """Allow to select the kind of final field based on a key. You need to pass
    the key and a dictionary with the mapping between key values and fields,
    given as (class, args, kwargs) or as a field prototype. You can use Type.DEFAULT
    as a default.

    The key is the name of a field in the parent chunk or a field that is
    unpacked ahead of time (without consuming the stream) to obtain a discriminant
    living inside the selected field itself, like a header starting with its own size.

        class Record(Chunk):
            kind    = fields.StructField('B', enum=RecordKind)
            payload = fields.SelectField('kind', {
                RecordKind.SHORT: (fields.StructField, ('H',), {}),
                RecordKind.BLOB:  fields.StringField(0x10),
            })

    The value of this field is the selected field itself.
    """
    class Type(Flag):
        DEFAULT = auto()

    def __init__(self, key, mapping, *args, **kwargs):
        self._key = key
        self._mapping = mapping
        self._field = None

        super().__init__(*args, **kwargs)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self._field!r})>'

    @property
    def field(self):
        return self._field

    def create(self, father):
        instance = super().create(father)
        if instance._field is not None:
            instance._field.father = father

        return instance

    def value_from_default(self):
        if self.default is None and SelectField.Type.DEFAULT not in self._mapping:
            return None

        key = self.default if self.default in self._mapping else SelectField.Type.DEFAULT

        return self.instance_field(key)

    def _set_value(self, value):
        if value is not None:
            value.father = self.father
            value.name = self.name

        self._field = value

    def _get_value(self):
        return self._field

    def instance_field(self, key):
        entry = self._mapping[key]

        if isinstance(entry, Field):
            field = entry.create(father=self.father)
        else:
            field_class, args, kwargs = entry
            field = field_class(*args, **kwargs)
            field.father = self.father

        field.name = self.name

        return field

    def _get_size(self) -> int:
        return self._field.size if self._field is not None else 0

    def _get_raw(self) -> bytes:
        return self._field.raw if self._field is not None else b''

    def relayout(self, offset=0):
        self.offset = offset
        if self._field is None:
            return 0

        return self._field.relayout(offset=offset)

    def _update_value(self):
        if self._field is not None:
            self._field._update_value()

    def resolve_key(self, stream):
        if isinstance(self._key, Field):
            probe = self._key.create(father=self)
            with stream.saved():
                probe.unpack(stream)

            return probe.value

        return getattr(self.father, self._key).value

    def unpack(self, stream):
        offset = stream.tell()
        key = self.resolve_key(stream)

        logger.debug('resolved key \'%s\' for \'%s\'' % (key, self.name))

        if key not in self._mapping:
            if SelectField.Type.DEFAULT not in self._mapping:
                raise UnsupportedVariantException(discriminant=key, offset=offset)
            key = SelectField.Type.DEFAULT

        field = self.instance_field(key)
        field.unpack(stream)

        self.value = field


class PaddingField(Field):
    '''Takes as much stream as possible'''

    def value_from_default(self):
        return b'' if self.default is None else self.default

    def _get_size(self):
        return len(self.value)

    def _get_raw(self):
        return self.value

    def unpack(self, stream):
        self.value = stream.read_all()


def check_offset(stream, offset):
    '''A field placed explicitly must start inside the data.'''
    size = stream.size()
    if offset > size:
        raise TruncatedException(offset=offset, needed=offset, available=size)
