import pytest

from rasterstruct.core import Chunk
from rasterstruct.enum import Compliant
from rasterstruct.exceptions import (
    MagicException,
    TruncatedException,
)
from rasterstruct.fields import StructField, StringField, ArrayField, Endianess
from rasterstruct.properties import Dependency


def test_chunk():
    """Check that building a Chunk from fields behaves correctly."""
    class Dummy(Chunk):
        a = StructField('I', default=0xbad)
        b = StringField(0x10)
        c = StructField('I', default=0xdeadbeef)

    dummy = Dummy()

    assert dummy.a.size == 4
    assert dummy.a.raw == b'\xad\x0b\x00\x00'
    assert dummy.a.value == 0xbad
    assert dummy.a.offset == 0x00
    assert dummy.a.father is dummy

    assert dummy.b.size == 0x10
    assert dummy.b.raw == b'\x00' * 0x10
    assert dummy.b.offset == 0x04

    assert dummy.c.size == 0x4
    assert dummy.c.raw == b'\xef\xbe\xad\xde'
    assert dummy.c.offset == 0x14

    assert dummy.size == 0x18
    assert dummy.fixed_size == 0x18
    assert len(dummy.raw) == dummy.size
    assert dummy.raw == (
        b'\xad\x0b\x00\x00' +
        b'\x00' * 0x10 +
        b'\xef\xbe\xad\xde'
    )


def test_chunk_instances_are_independent():
    class Dummy(Chunk):
        a = StructField('I')

    first, second = Dummy(), Dummy()
    first.a.value = 1

    assert second.a.value == 0
    assert first != second


def test_chunk_w_dependencies():
    class Example(Chunk):
        sz = StructField('I')
        data = StringField(Dependency('.sz'), default=b'kebab')

    example = Example()

    assert example.sz.father is example
    assert example.sz.value == 5
    assert example.data.value == b'kebab'

    example.data.value = b'miao'
    assert example.pack() == b'\x04\x00\x00\x00miao'
    assert example.sz.value == 4


def test_chunk_unpack_w_dependencies():
    class Example(Chunk):
        sz = StructField('H', endianess=Endianess.BIG_ENDIAN)
        data = StringField(Dependency('.sz'))
        trailer = StructField('B')

    example = Example(b'\x00\x03abc\xff')

    assert example.data.value == b'abc'
    assert example.trailer.value == 0xff
    assert example.layout == {
        'sz': (0, 2),
        'data': (2, 3),
        'trailer': (5, 1),
    }

    with pytest.raises(TruncatedException) as e:
        Example(b'\x00\x04abc')

    assert e.value.chain == ['data']


def test_chunk_fixed_size_is_checked_upfront():
    """A short buffer is reported as truncated before looking at the magic."""
    class Header(Chunk):
        magic = StringField(4, default=b'MIAO', is_magic=True)
        version = StructField('I')

    with pytest.raises(TruncatedException) as e:
        Header(b'BAU')

    assert e.value.needed == 8
    assert e.value.available == 3

    with pytest.raises(MagicException):
        Header(b'BAU!\x00\x00\x00\x00')

    header = Header(b'BAU!\x01\x00\x00\x00', compliant=Compliant.NONE)

    assert header.magic.value == b'BAU!'
    assert header.version.value == 1


def test_proxy_like_format():
    """Check that a file format having sub-components referring to overlapping data
    behaves gently.
    """

    class Proxy(Chunk):
        off = StructField('I')
        sz = StructField('I')

    class Experiment(Chunk):
        """
        Simple file format where two header-like fields intercept overlapping data into the file.
        """
        proxy_a = Proxy()
        proxy_b = Proxy()

        contents = StringField(0x100)

    experiment = Experiment()

    assert experiment.layout == {
        'proxy_a': (0, 8),
        'proxy_b': (8, 8),
        'contents': (16, 256),
    }

    assert experiment.size == 0x100 + 2 * (4 + 4)
    assert len(experiment.raw) == experiment.size
    assert experiment.raw == b'\x00' * experiment.size


def test_nested_exception_chain():
    class Entry(Chunk):
        magic = StringField(2, default=b'OK', is_magic=True)

    class Table(Chunk):
        count = StructField('B')
        entries = ArrayField(Entry(), n=Dependency('.count'))

    table = Table(b'\x02OKOK')
    assert len(table.entries) == 2

    with pytest.raises(MagicException) as e:
        Table(b'\x02OKKO')

    assert e.value.path == 'entries.1.magic'
    assert e.value.offset == 3


def test_explicit_offset():
    class Indirect(Chunk):
        ptr = StructField('B')
        payload = StringField(2, offset=Dependency('.ptr'))

    indirect = Indirect(b'\x03\xaa\xbbhi')

    assert indirect.payload.value == b'hi'
    assert indirect.payload.offset == 3
    assert indirect.fixed_size is None

    with pytest.raises(TruncatedException):
        Indirect(b'\x09\xaa\xbbhi')


def test_dependency_from_ancestor_and_root():
    class Body(Chunk):
        first = StringField(2, offset=Dependency('@Envelope.ptr'))
        second = StringField(1, offset=Dependency('ptr'))

    class Envelope(Chunk):
        ptr = StructField('B')
        body = Body()

    envelope = Envelope(b'\x03\xaa\xbbhi')

    assert envelope.body.first.value == b'hi'
    assert envelope.body.second.value == b'h'
    assert envelope.body.root is envelope
    assert envelope.root is envelope

    with pytest.raises(ValueError):
        Dependency('@Missing.ptr').resolve(envelope.body.first)
