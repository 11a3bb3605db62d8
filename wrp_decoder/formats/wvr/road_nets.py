"""
Road network section trailing the 1WVR object stream.

Each net is a 24-byte name, a fixed header and a list of subnets
ended by a (0, 0) position. A net named EndOfNets closes the section.
"""
from typing import List

from ...base.binary_reader import BinaryReader
from ...models import RoadNet, SubNet
from ...records import NetHeader, SubNetBody

NET_NAME_SIZE = 24
END_OF_NETS = 'EndOfNets'
END_OF_NETS_TAIL = 40
SUBNET_SCALE = 50.0


def read_subnets(reader: BinaryReader) -> List[SubNet]:
    subnets = []
    while True:
        sx = reader.read_f32()
        sy = reader.read_f32()
        if sx == 0.0 and sy == 0.0:
            break
        body = reader.parse_record(SubNetBody)
        subnets.append(SubNet(
            x=sx * SUBNET_SCALE,
            y=sy * SUBNET_SCALE,
            triplet=tuple(body.triplet),
            stepping=body.stepping,
        ))
    return subnets


def read_road_nets(reader: BinaryReader, nets: List[RoadNet]) -> None:
    """
    Read nets until EndOfNets or the end of the stream

    Nets are appended to `nets` as they complete, so a caller that
    catches an error still keeps everything read before it.

    Raises:
        TruncatedStreamError: If a net record is cut short
    """
    while True:
        name_data = reader.stream.read(NET_NAME_SIZE)
        if len(name_data) < NET_NAME_SIZE:
            return
        name = name_data.split(b'\0', 1)[0].decode('utf-8', 'replace')

        if name == END_OF_NETS:
            reader.stream.read(END_OF_NETS_TAIL)
            return

        header = reader.parse_record(NetHeader)
        nets.append(RoadNet(
            name=name,
            type=header.net_type,
            origin=tuple(header.origin),
            scale=header.scale,
            subnets=read_subnets(reader),
        ))
