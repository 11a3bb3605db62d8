"""
Tests for the OPRW v12-v25 parser
"""
import io

import numpy as np
import pytest

from wrp_decoder import ReadOptions, read
from wrp_decoder.base.world_parser import INVALID_MODEL_INDEX

from builders import build_modern_oprw, build_road_link, transform


class TestModernV25:
    """Latest layout with app id, LZO blocks and full road links"""

    def test_header(self):
        world = read(build_modern_oprw())
        assert (world.format.signature, world.format.version) == ('OPRW', 25)
        assert world.app_id == 107410
        assert (world.grid.land_size_x, world.grid.terrain_size_x) == (2, 2)

    def test_quadtree_layers(self):
        world = read(build_modern_oprw())
        np.testing.assert_array_equal(world.cell_bit_flags, [0x21, 0x40, 0x21, 0x40])
        np.testing.assert_array_equal(world.cell_env_sounds, [1, 2, 3, 4])
        np.testing.assert_array_equal(world.cell_texture_indexes, [1, 2, 1, 2])
        assert world.stats.cell_flags.forest_cells == 2
        assert world.stats.cell_flags.roadway_cells == 2

    def test_tables(self):
        world = read(build_modern_oprw())
        assert world.peaks == [(10.0, 20.0, 30.0)]
        assert world.stats.peak_count == 1
        assert [t.filename for t in world.textures] == ['grass.paa']
        assert world.textures[0].color == 3
        assert world.models == ['a.p3d', 'b.p3d']
        assert world.warnings == []

    def test_bounds_use_land_grid(self):
        world = read(build_modern_oprw(land=(4, 2), terrain=(2, 2), cell_size=25.0,
                                       geography_leaf=bytes(4), material_leaf=bytes(4)))
        assert world.bounds.world_size_x == 100.0
        assert world.bounds.world_size_y == 50.0
        assert world.bounds.min_elevation == 0.0
        assert world.bounds.max_elevation == 3.0

    def test_objects(self):
        data = build_modern_oprw(objects=[
            (42, 1, transform((100.0, 10.0, 200.0))),
            (43, 0, transform((1.0, 2.0, 3.0))),
        ])
        world = read(data)
        assert world.stats.object_count == 2
        first = world.objects[0]
        assert (first.object_id, first.model_index, first.model_name) == (42, 1, 'b.p3d')
        assert first.position == (100.0, 10.0, 200.0)

    def test_invalid_model_indexes(self):
        world = read(build_modern_oprw(objects=[(5, 9, transform()), (6, -1, transform())]))
        assert [w.kind for w in world.warnings] == [INVALID_MODEL_INDEX, INVALID_MODEL_INDEX]
        assert world.warnings[0].message == 'object 5 references model index 9 (max 1)'
        assert world.warnings[1].message == 'object 6 references model index -1 (max 1)'
        assert world.objects[1].model_name == ''

    def test_road_links(self):
        link = build_road_link(25, [(1.0, 2.0, 3.0), (4.0, 5.0, 6.0)], 77,
                               connection_types=[1, 2], p3d_path='roads\\asf.p3d',
                               matrix=transform((9.0, 8.0, 7.0)))
        world = read(build_modern_oprw(road_links={2: [link, link]}))
        assert len(world.road_links) == 4
        assert world.road_links[0] == []
        assert len(world.road_links[2]) == 2
        road = world.road_links[2][0]
        assert road.positions == [(1.0, 2.0, 3.0), (4.0, 5.0, 6.0)]
        assert road.object_id == 77
        assert road.connection_types == [1, 2]
        assert road.pose.p3d_path == 'roads\\asf.p3d'
        assert road.pose.pose.position == (9.0, 8.0, 7.0)
        assert world.stats.road_net_count == 2

    def test_map_info_is_kept(self):
        world = read(build_modern_oprw(map_info=b'\x01\x02\x03'))
        assert world.map_info == b'\x01\x02\x03'

    def test_skip_objects_consumes_stream(self):
        data = build_modern_oprw(objects=[(1, 0, transform())] * 3, map_info=b'xy')
        stream = io.BytesIO(data)
        world = read(stream, ReadOptions(skip_objects=True))
        assert world.objects == []
        assert world.map_info == b'xy'
        assert stream.tell() == len(data)


class TestModernVersions:
    """Version-gated sections"""

    def test_version_12(self):
        link = build_road_link(12, [(1.0, 1.0, 1.0)], 5)
        data = build_modern_oprw(version=12, road_links={0: [link]}, objects=[(1, 0, transform())])
        world = read(data)
        assert world.format.version == 12
        assert world.app_id == 0
        road = world.road_links[0][0]
        assert road.connection_types is None
        assert road.pose is None
        assert world.objects[0].model_name == 'a.p3d'

    def test_version_16_has_pose_without_connection_types(self):
        link = build_road_link(16, [(1.0, 1.0, 1.0)], 5)
        world = read(build_modern_oprw(version=16, road_links={1: [link]}))
        road = world.road_links[1][0]
        assert road.connection_types is None
        assert road.pose is not None
        assert road.pose.p3d_path == 'road.p3d'

    @pytest.mark.parametrize('version', [20, 23])
    def test_packed_elevations(self, version):
        elevations = [float(i) for i in range(256)]
        data = build_modern_oprw(version=version, terrain=(16, 16), elevations=elevations,
                                 objects=[(1, 1, transform())])
        world = read(data)
        assert len(world.elevations) == 256
        assert world.elevations[255] == 255.0
        assert world.bounds.max_elevation == 255.0
        assert world.objects[0].model_name == 'b.p3d'
