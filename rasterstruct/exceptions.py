def _hex(value):
    return '0x%08x' % value if isinstance(value, int) else repr(value)


class RasterstructException(Exception):
    '''Base class to extend in order to throw exception in rasterstruct.

    It takes a single argument that represents the chain of the layer that
    caused the exception: the innermost field comes first, each chunk the
    exception passes through appends its own field name.
    '''

    def __init__(self, chain=None):
        self.chain = [] if chain is None else chain
        super().__init__()

    @property
    def path(self):
        return '.'.join(self.chain[::-1])

    def describe(self):
        return self.__class__.__name__

    def __str__(self):
        msg = self.describe()
        if self.chain:
            msg += f" (field '{self.path}')"

        return msg


class UnpackException(RasterstructException):
    '''Something in the binary data doesn't fit the format.'''
    pass


class TruncatedException(UnpackException):

    def __init__(self, offset=None, needed=None, available=None, chain=None):
        self.offset = offset
        self.needed = needed
        self.available = available
        super().__init__(chain=chain)

    def describe(self):
        return f'truncated data at offset {self.offset}: needed {self.needed} bytes but {self.available} available'


class MagicException(UnpackException):

    def __init__(self, offset=None, expected=None, found=None, chain=None):
        self.offset = offset
        self.expected = expected
        self.found = found
        super().__init__(chain=chain)

    def describe(self):
        return f'bad magic at offset {self.offset}: expected {self.expected!r}, found {self.found!r}'


class InvalidEncodingException(UnpackException):
    '''The bytes don't decode into the textual or enumerated form required.'''

    def __init__(self, value=None, reason=None, chain=None):
        self.value = value
        self.reason = reason
        super().__init__(chain=chain)

    def describe(self):
        msg = f'invalid encoding for value {self.value!r}'
        if self.reason:
            msg += f': {self.reason}'

        return msg


class UnrecognizedChunkTypeException(InvalidEncodingException):
    pass


class ChecksumMismatchException(UnpackException):

    def __init__(self, stored=None, computed=None, chain=None):
        self.stored = stored
        self.computed = computed
        super().__init__(chain=chain)

    def describe(self):
        return 'checksum mismatch: stored %s but computed %s' % (_hex(self.stored), _hex(self.computed))


class UnsupportedVariantException(UnpackException):

    def __init__(self, discriminant=None, offset=None, chain=None):
        self.discriminant = discriminant
        self.offset = offset
        super().__init__(chain=chain)

    def describe(self):
        return f'no variant registered for discriminant {self.discriminant!r} (offset {self.offset})'


class UnsupportedColorTypeException(RasterstructException):
    '''The geometry mapping has no rule for the given pixel layout.'''

    def __init__(self, color_type=None, bit_depth=None, bits_per_pixel=None, chain=None):
        self.color_type = color_type
        self.bit_depth = bit_depth
        self.bits_per_pixel = bits_per_pixel
        super().__init__(chain=chain)

    def describe(self):
        if self.bits_per_pixel is not None:
            return f'no color type maps to {self.bits_per_pixel} bits per pixel'

        return f'unsupported color type {self.color_type!r} with bit depth {self.bit_depth!r}'


class MissingChunkException(RasterstructException):

    def __init__(self, name=None, chain=None):
        self.name = name
        super().__init__(chain=chain)

    def describe(self):
        return f'no chunk with name {self.name}'
