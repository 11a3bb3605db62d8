"""
OPRW v2/v3 parser.

Fixed section order: optional grid sizes (v3), LZSS-packed cell
tables, peaks, texture and model tables, then an object stream
terminated by a 0xFFFFFFFF id.
"""
import numpy as np

from ...base.world_parser import (
    WorldParserBase, ROADS_UNSUPPORTED, compute_bounds, compute_cell_flags,
)
from ...compression import Codec, decompress_or_raw
from ...models import FormatInfo, GridInfo, StatsInfo, TextureEntry, WorldData
from ...records import LegacyObjectBody, LEGACY_OBJECT_BODY_SIZE

DEFAULT_GRID_SIZE = 256
CELL_SIZE = 50.0
OBJECT_SENTINEL = 0xFFFFFFFF


class LegacyOprwParser(WorldParserBase):
    """Parser for OPRW version 2 and 3"""

    SIGNATURE = 'OPRW'

    def _read_packed(self, count: int, dtype: str) -> np.ndarray:
        item_size = np.dtype(dtype).itemsize
        data = decompress_or_raw(self.reader, count * item_size, Codec.LZSS)
        return np.frombuffer(data, dtype=dtype).copy()

    def parse(self) -> WorldData:
        r = self.reader
        layer_x = layer_y = map_x = map_y = DEFAULT_GRID_SIZE
        if self.version == 3:
            layer_x, layer_y, map_x, map_y = r.read_struct('<4I')

        grid = GridInfo(layer_x, layer_y, CELL_SIZE, map_x, map_y)
        layer_cells = grid.land_cells
        self.logger.debug(f"Grid: layer {layer_x}x{layer_y}, map {map_x}x{map_y}")

        cell_bit_flags = self._read_packed(layer_cells, '<u4')
        cell_env_sounds = self._read_packed(layer_cells, 'u1')

        n_peaks = r.read_u32()
        peaks = [tuple(p) for p in r.read_f32_slice(n_peaks * 3).reshape(-1, 3).tolist()]
        self.logger.debug(f"Peaks: {n_peaks}")

        cell_texture_indexes = self._read_packed(layer_cells, '<u2')
        cell_ext_flags = self._read_packed(layer_cells, '<u4')

        # Elevations cover the map (terrain) grid
        elevations = self._read_packed(grid.terrain_cells, '<f4')

        textures = []
        for _ in range(r.read_u32()):
            filename = r.read_asciiz()
            textures.append(TextureEntry(filename, r.read_u8()))

        models = [r.read_asciiz() for _ in range(r.read_u32())]
        self.logger.debug(f"Textures: {len(textures)}, models: {len(models)}")

        objects = []
        while True:
            object_id = r.read_u32()
            if object_id == OBJECT_SENTINEL:
                break
            if self.options.skip_objects:
                r.read_bytes(LEGACY_OBJECT_BODY_SIZE)
                continue
            body = r.parse_record(LegacyObjectBody)
            raw_index = body.model_index
            # Stored unsigned; values past 2^31 are negative indexes
            model_index = raw_index - (1 << 32) if raw_index >= (1 << 31) else raw_index
            model_name = self._lookup_model(object_id, model_index, models, raw_index)
            objects.append(self._make_object(object_id, model_index, model_name, body.transform))

        self._warn(ROADS_UNSUPPORTED, "OPRW format does not contain road/net data")

        world = WorldData(
            format=FormatInfo(self.SIGNATURE, self.version),
            grid=grid,
            elevations=elevations,
            bounds=compute_bounds(elevations, grid),
            stats=StatsInfo(
                texture_count=len(textures),
                model_count=len(models),
                object_count=len(objects),
                peak_count=n_peaks,
                road_net_count=0,
                cell_flags=compute_cell_flags(cell_bit_flags),
            ),
            cell_bit_flags=cell_bit_flags,
            cell_ext_flags=cell_ext_flags,
            cell_env_sounds=cell_env_sounds,
            cell_texture_indexes=cell_texture_indexes,
            textures=textures,
            models=models,
            objects=objects,
            peaks=peaks,
            warnings=self.warnings,
        )
        self._log_summary(world)
        return world
