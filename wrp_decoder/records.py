# records.py

from construct import (
    Struct,
    Bytes,
    Int32ul,
    Int32sl,
    Float32l,
    Adapter,
)
from typing import NamedTuple


class Vec3(NamedTuple):
    x: float
    y: float
    z: float


class Vec3Adapter(Adapter):
    def _decode(self, obj, context, path):
        return Vec3(x=obj[0], y=obj[1], z=obj[2])

    def _encode(self, obj, context, path):
        return [obj.x, obj.y, obj.z]


class NameAdapter(Adapter):
    """Fixed-size name buffer, cut at the first null"""

    def _decode(self, obj, context, path):
        return obj.split(b'\0', 1)[0].decode('utf-8', 'replace')

    def _encode(self, obj, context, path):
        raise NotImplementedError("world records are read-only")


Vec3Float = Vec3Adapter(Float32l[3])
TransformMatrix = Float32l[12]

# OPRW v2/v3 object body, after the id / sentinel
LegacyObjectBody = Struct(
    "model_index" / Int32ul,
    "transform" / TransformMatrix,
)
LEGACY_OBJECT_BODY_SIZE = LegacyObjectBody.sizeof()

# OPRW v12+ object record
ModernObject = Struct(
    "object_id" / Int32sl,
    "model_index" / Int32sl,
    "transform" / TransformMatrix,
    "shape_param" / Int32sl,
)
MODERN_OBJECT_SIZE = ModernObject.sizeof()

# 4WVR object record
Wvr4Object = Struct(
    "transform" / TransformMatrix,
    "object_id" / Int32sl,
    "name" / NameAdapter(Bytes(76)),
)
WVR4_OBJECT_SIZE = Wvr4Object.sizeof()

# 1WVR object record, position in cell units
Wvr1Object = Struct(
    "position" / Vec3Float,
    "heading" / Float32l,
    "name" / NameAdapter(Bytes(48)),
)
WVR1_OBJECT_SIZE = Wvr1Object.sizeof()

# 1WVR net header, after the 24-byte name
NetHeader = Struct(
    "constants" / Int32ul[5],
    "net_type" / Int32ul,
    "origin" / Vec3Float,
    "scale" / Float32l,
)

# 1WVR subnet body, after its (x, y) pair
SubNetBody = Struct(
    "triplet" / Vec3Float,
    "stepping" / Float32l,
    "constants" / Int32ul[2],
)

# Entity info trailer, after class and shape names
EntityInfoTail = Struct(
    "position" / Vec3Float,
    "object_id" / Int32sl,
)
