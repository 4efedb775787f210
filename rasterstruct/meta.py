"""
Machinery turning the Field instances declared as class attributes of a Chunk
into per-instance fields, keeping the order of declaration.
"""
import copy
import logging
from enum import Enum, auto


logger = logging.getLogger(__name__)


class Endianess(Enum):
    LITTLE_ENDIAN = auto()
    BIG_ENDIAN    = auto()


# attributes of Field/Chunk that a field cannot shadow
RESERVED_NAMES = {
    'name', 'father', 'default', 'offset', 'explicit_offset', 'endianess',
    'compliant', 'is_magic', 'value', 'size', 'raw', 'root', 'layout', 'fixed_size',
}


class FieldDescriptor(object):
    """The class attribute holds a prototype, each instance of the chunk gets its own
    copy the first time the attribute is accessed.

    Assigning a field of the same class replaces it, anything else is assigned
    to its value."""

    def __init__(self, field_instance: "Field", field_name: str):
        self.field = field_instance
        self.field.name = field_name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self

        fields = instance.__dict__
        name = self.field.name

        if name not in fields:
            logger.debug("instancing field '%s' for %s", name, instance.__class__.__name__)
            fields[name] = self.field.create(father=instance)

        return fields[name]

    def __set__(self, instance, value):
        logger.debug("assigning field '%s' of %s", self.field.name, instance.__class__.__name__)

        if not isinstance(value, self.field.__class__):
            self.__get__(instance).value = value
            return

        value.father = instance
        value.name = self.field.name
        instance.__dict__[self.field.name] = value


class FieldBase(object):

    def contribute_to_chunk(self, cls, name):
        if name in RESERVED_NAMES:
            raise AttributeError(f'{cls.__name__}.{name} would shadow an attribute of the chunk')

        if name in cls.__dict__:
            raise AttributeError(f'field {name} is already present in class {cls.__name__}')

        setattr(cls, name, FieldDescriptor(self, name))

    def create(self, father):
        '''Returns a copy of this prototype bound to the given father.'''
        instance = copy.deepcopy(self)
        instance.father = father
        return instance


class Meta(object):
    """Class containing metadata about the format: for now the names of the fields, in order."""

    def __init__(self, fields=None):
        self.fields = [] if fields is None else list(fields)


class MetaChunk(type):
    '''Django-like declaration of the fields: the inherited fields come first,
    then the ones of the class in the order they are written.'''

    def __new__(cls, name, bases, attrs):
        declared = {_: attrs.pop(_) for _ in list(attrs) if is_field(attrs[_])}

        new_cls = super().__new__(cls, name, bases, attrs)

        inherited = []
        for parent in bases:
            for field_name in getattr(parent, '_meta', Meta()).fields:
                if field_name not in inherited:
                    inherited.append(field_name)

        new_cls._meta = Meta(inherited)

        for field_name, field in declared.items():
            new_cls.add_field(field_name, field)

        return new_cls

    def add_field(cls, name, field):
        logger.debug('adding field \'%s\' to %s' % (name, cls.__name__))
        if name not in cls._meta.fields:
            cls._meta.fields.append(name)

        field.contribute_to_chunk(cls, name)


def is_field(value):
    return hasattr(value, 'contribute_to_chunk') and not isinstance(value, type)
