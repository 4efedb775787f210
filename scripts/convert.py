#!/usr/bin/env python3
'''
Convert between PNG and BMP, the direction is given by the extension
of the source file

 $ convert.py image.png image.bmp
 $ convert.py image.bmp image.png

Only the metadata are converted, the pixels are copied as they are.
'''
import logging
import sys
import os

from rasterstruct.codec import (
    parse_container,
    parse_flat_image,
    serialize_container,
    serialize_flat_image,
    convert_chunked_to_flat,
    convert_flat_to_chunked,
)
from rasterstruct.convert import ConversionOptions
from rasterstruct.exceptions import RasterstructException
from rasterstruct.images.png import ChunkType, PNGChunk


logging.basicConfig(level=logging.INFO if 'DEBUG' not in os.environ else logging.DEBUG)
logger = logging.getLogger(__name__)


def usage(progname):
    print(f'usage: {progname} <source .png|.bmp> <destination>')
    sys.exit(1)


def convert(data, extension):
    options = ConversionOptions(
        preserve_unknown_chunks=True,
        suffix_chunks=[PNGChunk.new(ChunkType(b'IEND'), b'')],
    )

    if extension == '.png':
        return serialize_flat_image(convert_chunked_to_flat(parse_container(data, options), options))

    if extension == '.bmp':
        return serialize_container(convert_flat_to_chunked(parse_flat_image(data), options))

    raise ValueError(f'extension \'{extension}\' not supported')


if __name__ == '__main__':
    if len(sys.argv) < 3:
        usage(sys.argv[0])

    source, destination = sys.argv[1:3]
    _, extension = os.path.splitext(source)

    with open(source, 'rb') as f:
        data = f.read()

    try:
        output = convert(data, extension.lower())
    except RasterstructException as e:
        print(f'{source}: {e}')
        sys.exit(2)

    with open(destination, 'wb') as f:
        f.write(output)

    logger.info('written %d bytes to %s' % (len(output), destination))
