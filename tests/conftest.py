import io
import logging
import os
import struct
import zlib

import pytest
from PIL import Image


logging.basicConfig(level=logging.INFO if 'DEBUG' not in os.environ else logging.DEBUG)

PNG_MAGIC = b'\x89PNG\r\n\x1a\n'


def make_chunk(chunk_type, data):
    '''Encode a chunk by hand, independently from the library.'''
    return struct.pack('>I', len(data)) + chunk_type + data + struct.pack('>I', zlib.crc32(chunk_type + data))


def make_ihdr(width, height, depth, color):
    return make_chunk(b'IHDR', struct.pack('>IIBBBBB', width, height, depth, color, 0, 0, 0))


@pytest.fixture
def chunk_factory():
    return make_chunk


@pytest.fixture
def ihdr_factory():
    return make_ihdr


@pytest.fixture
def png_factory():
    def _png(*chunks):
        return PNG_MAGIC + b''.join(chunks)

    return _png


@pytest.fixture
def pillow_image():
    '''Encode with Pillow an image of the given mode and size.'''
    def _image(mode, size=(5, 3), format='PNG'):
        image = Image.new(mode, size)
        output = io.BytesIO()
        image.save(output, format=format)

        return output.getvalue()

    return _image
