#!/usr/bin/env python3
'''
Validate a BMP file, print its headers and show it

 $ convert -size 5x5 xc:red -size 5x5 xc:green -append BMP3:test.bmp
 $ bmpshow.py test.bmp
'''
import io
import logging
import sys
import os

from PIL import Image

from rasterstruct.codec import parse_flat_image
from rasterstruct.exceptions import RasterstructException


logging.basicConfig(level=logging.INFO if 'DEBUG' not in os.environ else logging.DEBUG)
logger = logging.getLogger(__name__)


def usage(progname):
    print(f'usage: {progname} <bmp file path>')
    sys.exit(1)


if __name__ == '__main__':
    if len(sys.argv) < 2:
        usage(sys.argv[0])

    filepath = sys.argv[1]

    with open(filepath, 'rb') as f:
        data = f.read()

    try:
        bmp = parse_flat_image(data)
    except RasterstructException as e:
        print(f'{filepath}: {e}')
        sys.exit(2)

    print(bmp.file_header)
    print(bmp.info_header.value)
    print(f'palette: {"none" if bmp.palette.value is None else len(bmp.palette.value)}')
    print(f'pixels: {len(bmp.pixels.value)} bytes at offset {bmp.file_header.img_offset.value}')

    image = Image.open(io.BytesIO(data))
    image.show()
