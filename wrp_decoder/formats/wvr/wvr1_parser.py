"""
1WVR parser.

Grid-only layout with 256 texture slots. Objects are 64-byte records
(position in cells, heading, name) with no count; the first record
whose name is not a model file marks the start of the road nets.
"""
import io

from ...base.binary_reader import WorldParseError
from ...base.world_parser import NET_PARSE_ERROR, build_model_index, compute_bounds
from ...models import FormatInfo, ObjectRecord, Rotation, StatsInfo, WorldData
from ...records import Wvr1Object, WVR1_OBJECT_SIZE
from .grid_parser import GridOnlyParser, CELL_SIZE
from .road_nets import read_road_nets

MODEL_EXTENSIONS = ('.p3d', '.p3x')


def is_model_name(name: str) -> bool:
    lowered = name.lower()
    return any(ext in lowered for ext in MODEL_EXTENSIONS)


class Wvr1Parser(GridOnlyParser):
    """Parser for 1WVR files"""

    SIGNATURE = '1WVR'
    TEXTURE_SLOTS = 256

    def parse(self) -> WorldData:
        grid = self._read_grid()
        elevations = self._read_elevations(grid.terrain_cells)
        cell_texture_indexes = self.reader.read_u16_slice(grid.land_cells)
        textures = self._read_texture_names()

        objects = []
        while True:
            data = self._read_record(WVR1_OBJECT_SIZE)
            if data is None:
                break
            record = Wvr1Object.parse(data)
            if not is_model_name(record.name):
                # Start of the net section
                self.reader.seek(-WVR1_OBJECT_SIZE, io.SEEK_CUR)
                break
            if self.options.skip_objects:
                continue
            x, y, z = record.position
            objects.append(ObjectRecord(
                object_id=0,
                model_index=0,
                model_name=record.name,
                transform=[0.0] * 12,
                position=(x * CELL_SIZE, y * CELL_SIZE, z * CELL_SIZE),
                rotation=Rotation(yaw=-record.heading),
                scale=1.0,
            ))
        self.logger.debug(f"Objects: {len(objects)}, net section at {self.reader.tell()}")

        models = build_model_index(objects)

        roads = []
        try:
            read_road_nets(self.reader, roads)
        except WorldParseError as e:
            self._warn(NET_PARSE_ERROR, f"error parsing nets/roads: {e}")

        world = WorldData(
            format=FormatInfo(self.SIGNATURE, self.version),
            grid=grid,
            elevations=elevations,
            bounds=compute_bounds(elevations, grid),
            stats=StatsInfo(
                texture_count=self._count_textures(textures),
                model_count=len(models),
                object_count=len(objects),
                road_net_count=len(roads),
            ),
            cell_texture_indexes=cell_texture_indexes,
            textures=textures,
            models=models,
            objects=objects,
            roads=roads,
            warnings=self.warnings,
        )
        self._log_summary(world)
        return world
