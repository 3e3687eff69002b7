"""Tags for the closed set of primitive types."""

from enum import IntEnum


class PrimitiveKind(IntEnum):
    """Enumeration of supported primitive types.

    Used by hit_primitive for dispatch and by the GPU packer to route each
    primitive into its storage buffer.
    """

    SPHERE = 0
    PLANE = 1
