from enum import Flag


class Compliant(Flag):
    '''It indicates which degree of compliantness the data must reflect the format.

    A field without an explicit level inherits the one of its father; the root
    of the hierarchy falls back to STRICT.'''
    NONE     = 0
    ENUM     = 1 << 0
    MAGIC    = 1 << 1
    INHERIT  = 1 << 2
    CRC      = 1 << 3
    REGISTRY = 1 << 4
    STRICT   = ENUM | MAGIC | CRC | REGISTRY
