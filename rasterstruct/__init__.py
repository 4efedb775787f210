"""
# Rasterstruct: PNG and BMP as file format ORM.

We can define a file format as a way of describing a binary representation of something
digital, where each subcomponent of the file format aims to represent a specific aspect
of the digital artefact.

Three main operations are defined for the file format and its sub components:

 1. unpack(): reading the binary data and build a high-level representation of that.
    When unpacking the offset is the actual offset of the stream and the chunk
    itself knows how many bytes needs to read to finalize the representation

 2. pack(): encode the high-level representation into binary data.

 3. relayout(): trigger a recursive layout "negotiation" between a component
    and its subcomponents so to have offset, size and the values depending
    on other fields (lengths, checksums) set in the correct way.
    If not indicated explicitly a packing also implies a relayouting.

The formats are in rasterstruct.images, rasterstruct.codec contains the
entry points working on byte buffers.
"""
