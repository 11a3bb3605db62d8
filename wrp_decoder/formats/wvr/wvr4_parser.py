"""
4WVR parser.

Grid-only layout with 512 texture slots, followed by 128-byte object
records (transform, id, name) up to the end of the file.
"""
from ...base.world_parser import ROADS_UNSUPPORTED, build_model_index, compute_bounds
from ...models import FormatInfo, StatsInfo, WorldData
from ...records import Wvr4Object, WVR4_OBJECT_SIZE
from .grid_parser import GridOnlyParser


class Wvr4Parser(GridOnlyParser):
    """Parser for 4WVR files"""

    SIGNATURE = '4WVR'
    TEXTURE_SLOTS = 512

    def parse(self) -> WorldData:
        grid = self._read_grid()
        elevations = self._read_elevations(grid.terrain_cells)
        cell_texture_indexes = self.reader.read_u16_slice(grid.land_cells)
        textures = self._read_texture_names()

        objects = []
        while True:
            data = self._read_record(WVR4_OBJECT_SIZE)
            if data is None:
                break
            if self.options.skip_objects:
                continue
            record = Wvr4Object.parse(data)
            if not record.name:
                continue
            objects.append(self._make_object(record.object_id, 0, record.name, record.transform))

        models = build_model_index(objects)
        self._warn(ROADS_UNSUPPORTED, "4WVR format does not contain road/net data")

        world = WorldData(
            format=FormatInfo(self.SIGNATURE, self.version),
            grid=grid,
            elevations=elevations,
            bounds=compute_bounds(elevations, grid),
            stats=StatsInfo(
                texture_count=self._count_textures(textures),
                model_count=len(models),
                object_count=len(objects),
            ),
            cell_texture_indexes=cell_texture_indexes,
            textures=textures,
            models=models,
            objects=objects,
            warnings=self.warnings,
        )
        self._log_summary(world)
        return world
