#!/usr/bin/env python3
'''
List the chunks of a PNG file with their properties

 $ pngdump.py image.png

the flags are C/a (critical/ancillary), P/p (public/private),
R/r (reserved bit valid or not), S/u (safe to copy or not).
'''
import logging
import sys
import os

from rasterstruct.codec import parse_container
from rasterstruct.convert import ConversionOptions
from rasterstruct.exceptions import RasterstructException


logging.basicConfig(level=logging.INFO if 'DEBUG' not in os.environ else logging.DEBUG)
logger = logging.getLogger(__name__)


def usage(progname):
    print(f'usage: {progname} <png file path>')
    sys.exit(1)


def flags(chunk_type):
    return ''.join([
        'C' if chunk_type.is_critical() else 'a',
        'P' if chunk_type.is_public() else 'p',
        'R' if chunk_type.is_reserved_bit_valid() else 'r',
        'S' if chunk_type.is_safe_to_copy() else 'u',
    ])


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    filepath = sys.argv[1]

    with open(filepath, 'rb') as f:
        data = f.read()

    try:
        png = parse_container(data, ConversionOptions(preserve_unknown_chunks=True))
    except RasterstructException as e:
        print(f'{filepath}: {e}')
        sys.exit(2)

    for idx, chunk in enumerate(png.chunks):
        chunk_type = chunk.type.value
        print(f'[{idx:02d}] {chunk_type!s} {flags(chunk_type)} offset=0x{chunk.offset:08x} length={chunk.length.value:<8d} crc=0x{chunk.crc.value:08x}')
