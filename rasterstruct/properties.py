import logging


logger = logging.getLogger(__name__)


def get_root_from_chunk(instance):
    return get_instance_from_chunk(instance, condition=lambda x: x.father is None)


def get_instance_from_class_name(instance, name):
    return get_instance_from_chunk(instance, condition=lambda x: x.__class__.__name__ == name)


def get_instance_from_chunk(instance, condition):
    '''Walks up the fathers starting from instance itself.'''
    while not condition(instance):
        instance = instance.father

        if instance is None:
            raise ValueError('no instance in the hierarchy satisfies the condition')

    return instance


class Dependency:
    '''A reference from a field to the value of another one, like

        class Record(Chunk):
            length = fields.StructField('I')
            data   = fields.StringField(Dependency('.length'))

    where unpacking "data" reads as many bytes as "length" says and relayouting
    writes the actual size of "data" back into "length".

    The expression is a dotted path, its first character tells where to start from

     - '.': the father of the field (i.e. the path starts with a sibling)
     - '@': the closest chunk up in the hierarchy whose class has the given name
     - anything else: the root chunk

    every component is looked up with getattr(), so properties work too
    (e.g. '.info_header.value.num_colors' goes through the field selected
    by a SelectField).
    '''
    def __init__(self, expression):
        self.expression = expression

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.expression})>'

    def resolve_field(self, instance):
        logger.debug('resolving \'%s\' from \'%s\'' % (self.expression, instance.__class__.__name__))

        head, *components = self.expression.split('.')

        if head == '':
            field = instance.father
            if field is None:
                raise ValueError(f'cannot resolve {self!r}: {instance.__class__.__name__} has no father')
        elif head.startswith('@'):
            field = get_instance_from_class_name(instance, head[1:])
        else:
            field = get_root_from_chunk(instance)
            components.insert(0, head)

        for component in components:
            field = getattr(field, component)

        return field

    def resolve(self, instance):
        '''The value of the referenced field.'''
        value = self.resolve_field(instance).value

        logger.debug(' resolved \'%s\' with value %s' % (self.expression, value))

        return value

    def resolve_and_set(self, instance, value):
        self.resolve_field(instance).value = value
