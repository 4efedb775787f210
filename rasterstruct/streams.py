import io
import logging
from contextlib import contextmanager

from .exceptions import TruncatedException


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around a bytes object to uniform its
    properties: mainly we need reads that fail loudly when the data
    is over and a way to look ahead without moving.'''
    def __init__(self, obj):
        '''Here we normalize the object in order to be accessed as a normal file object'''
        self._type = type(obj)
        self.obj = obj
        self.history = []

        init_method_name = 'init_%s' % self.obj.__class__.__name__

        init_method = getattr(self, init_method_name, None)

        if init_method is None:
            raise ValueError('\'%s\' is the wrong kind of object to wrap' % self._type.__name__)

        init_method()

    def __getattr__(self, name):
        return getattr(self.obj, name)

    def __repr__(self):
        return '<%s(%s @ %d)>' % (self.__class__.__name__, self._type.__name__, self.obj.tell())

    def init_bytes(self):
        self.obj = io.BytesIO(self.obj)

    def init_bytearray(self):
        self.obj = io.BytesIO(bytes(self.obj))

    def init_memoryview(self):
        self.obj = io.BytesIO(self.obj.tobytes())

    def seek(self, offset, whence=io.SEEK_SET):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        return self.obj.seek(offset, whence)

    def size(self):
        current = self.obj.tell()
        end = self.obj.seek(0, io.SEEK_END)
        self.obj.seek(current)

        return end

    def remaining(self):
        return self.size() - self.obj.tell()

    def read_exactly(self, n):
        offset = self.obj.tell()
        data = self.obj.read(n)

        if len(data) != n:
            logger.debug('wanted %d bytes at offset %d, got %d' % (n, offset, len(data)))
            raise TruncatedException(offset=offset, needed=n, available=len(data))

        return data

    def peek(self, n):
        with self.saved():
            return self.obj.read(n)

    def read_all(self):
        return self.obj.read()

    def write(self, data):
        return self.obj.write(data)

    def save(self):
        self.history.append(self.obj.tell())

    def restore(self):
        old_seek = self.history.pop()
        self.obj.seek(old_seek)

    @contextmanager
    def saved(self):
        self.save()
        try:
            yield self
        finally:
            self.restore()
