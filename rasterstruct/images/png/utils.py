import logging

from rasterstruct.exceptions import MissingChunkException


logger = logging.getLogger(__name__)


def get_chunks_by_name(chunks, name):
    return [_ for _ in chunks if str(_.type.value) == name]


def get_chunk_by_name(chunks, name):
    '''Returns the first chunk with the given name.'''
    found = get_chunks_by_name(chunks, name)

    if len(found) == 0:
        raise MissingChunkException(name=name)

    if len(found) > 1:
        logger.warning(f'found {len(found)} chunks named {name}, using the first one')

    return found[0]


def get_IDAT_data(chunks):
    '''In a PNG file, the concatenation of the contents of all the IDAT chunks makes up a zlib datastream,
    the boundaries between IDAT chunks are arbitrary and can fall anywhere in the zlib datastream.

    The data is returned as it is, without decompressing it.
    '''
    data = b''

    for chunk in get_chunks_by_name(chunks, 'IDAT'):
        data += chunk.data.value

    return data
