"""
OPRW v12-v25 parser.

Sections are read in file order; several only exist above or below
a version threshold. Blocks are LZSS packed up to v22 and LZO packed
from v23 on. Layers indexed by land cell come from quadtrees, the
elevation table covers the terrain grid.
"""
from typing import List

import numpy as np

from ...base.world_parser import WorldParserBase, compute_bounds, compute_cell_flags
from ...compression import Codec, decompress_or_raw
from ...models import (
    FormatInfo, GridInfo, RoadLink, RoadLinkPose, StatsInfo, TextureEntry, WorldData,
)
from ...quadtree import read_quad_tree, skip_quad_tree
from ...records import EntityInfoTail, ModernObject, MODERN_OBJECT_SIZE
from ...transform import decompose_transform

# Version thresholds
APP_ID_VERSION = 25
LZO_VERSION = 23
PRIMTEX_VERSION = 22
RANDOM_MAX_VERSION = 21
GRASS_VERSION = 18
ENTITY_INFO_VERSION = 15
CONNECTION_TYPES_VERSION = 24
ROAD_LINK_POSE_VERSION = 16


class ModernOprwParser(WorldParserBase):
    """Parser for OPRW version 12 through 25"""

    SIGNATURE = 'OPRW'

    @property
    def codec(self) -> Codec:
        return Codec.LZO if self.version >= LZO_VERSION else Codec.LZSS

    def _read_compressed(self, size: int) -> bytes:
        return decompress_or_raw(self.reader, size, self.codec)

    def _read_road_link(self) -> RoadLink:
        r = self.reader
        count = r.read_u16()
        positions = [tuple(p) for p in r.read_f32_slice(count * 3).reshape(-1, 3).tolist()]

        connection_types = None
        if self.version >= CONNECTION_TYPES_VERSION:
            connection_types = list(r.read_bytes(count))

        object_id = r.read_i32()

        pose = None
        if self.version >= ROAD_LINK_POSE_VERSION:
            p3d_path = r.read_asciiz()
            transform = r.read_transform_matrix()
            pose = RoadLinkPose(p3d_path, transform, decompose_transform(transform))

        return RoadLink(positions, object_id, connection_types, pose)

    def _read_road_links(self, land_cells: int) -> List[List[RoadLink]]:
        road_links = []
        for _ in range(land_cells):
            n_links = self.reader.read_i32()
            road_links.append([self._read_road_link() for _ in range(n_links)])
        return road_links

    def parse(self) -> WorldData:
        r = self.reader
        version = self.version
        self.logger.debug(f"OPRW v{version}, codec {self.codec.value}")

        app_id = r.read_i32() if version >= APP_ID_VERSION else 0

        land_x, land_y, terrain_x, terrain_y = r.read_struct('<4i')
        cell_size = r.read_f32()
        grid = GridInfo(land_x, land_y, cell_size, terrain_x, terrain_y)
        land_cells = grid.land_cells
        terrain_cells = grid.terrain_cells
        self.logger.debug(
            f"Grid: land {land_x}x{land_y}, terrain {terrain_x}x{terrain_y}, cell {cell_size}"
        )

        cell_bit_flags = read_quad_tree(r, land_x, land_y, 2).astype(np.uint32)
        cell_env_sounds = read_quad_tree(r, land_x, land_y, 1)

        n_peaks = r.read_i32()
        peaks = [tuple(p) for p in r.read_f32_slice(max(n_peaks, 0) * 3).reshape(-1, 3).tolist()]

        cell_texture_indexes = read_quad_tree(r, land_x, land_y, 2)

        if version < RANDOM_MAX_VERSION:
            self._read_compressed(land_cells * 2)
        if version >= GRASS_VERSION:
            self._read_compressed(terrain_cells)
        if version >= PRIMTEX_VERSION:
            self._read_compressed(terrain_cells)

        elevations = np.frombuffer(self._read_compressed(terrain_cells * 4), dtype='<f4').copy()
        self.logger.debug(f"Elevations: {len(elevations)}")

        textures = []
        for _ in range(r.read_i32()):
            filename = r.read_asciiz()
            textures.append(TextureEntry(filename, r.read_u8()))

        models = [r.read_asciiz() for _ in range(r.read_i32())]
        self.logger.debug(f"Textures: {len(textures)}, models: {len(models)}")

        if version >= ENTITY_INFO_VERSION:
            for _ in range(r.read_i32()):
                r.read_asciiz()  # class name
                r.read_asciiz()  # shape name
                r.parse_record(EntityInfoTail)

        # Per land cell offsets into the object stream, not needed for a full pass
        skip_quad_tree(r, land_x, land_y, 4)
        size_of_objects = r.read_i32()
        skip_quad_tree(r, land_x, land_y, 4)
        size_of_map_info = r.read_i32()

        self._read_compressed(land_cells)  # persistent flags
        self._read_compressed(terrain_cells)  # subdivision hints
        r.read_i32()  # max object id
        r.read_i32()  # road net size

        road_links = self._read_road_links(land_cells)
        total_links = sum(len(links) for links in road_links)
        self.logger.debug(f"Road links: {total_links}")

        n_objects = max(size_of_objects, 0) // MODERN_OBJECT_SIZE
        objects = []
        if self.options.skip_objects:
            r.read_bytes(n_objects * MODERN_OBJECT_SIZE)
        else:
            for _ in range(n_objects):
                record = r.parse_record(ModernObject)
                model_name = self._lookup_model(record.object_id, record.model_index, models)
                objects.append(
                    self._make_object(record.object_id, record.model_index, model_name, record.transform)
                )

        map_info = r.read_bytes(size_of_map_info) if size_of_map_info > 0 else b''

        world = WorldData(
            format=FormatInfo(self.SIGNATURE, version),
            grid=grid,
            elevations=elevations,
            bounds=compute_bounds(elevations, grid),
            stats=StatsInfo(
                texture_count=len(textures),
                model_count=len(models),
                object_count=len(objects),
                peak_count=len(peaks),
                road_net_count=total_links,
                cell_flags=compute_cell_flags(cell_bit_flags),
            ),
            cell_bit_flags=cell_bit_flags,
            cell_env_sounds=cell_env_sounds,
            cell_texture_indexes=cell_texture_indexes,
            textures=textures,
            models=models,
            objects=objects,
            road_links=road_links,
            peaks=peaks,
            warnings=self.warnings,
            app_id=app_id,
            map_info=map_info,
        )
        self._log_summary(world)
        return world
