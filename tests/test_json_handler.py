"""
Tests for the JSON and GeoJSON builders
"""
import io
import json
import math

import numpy as np
import pytest

from wrp_decoder import read
from wrp_decoder.forest import ForestType, Polygon
from wrp_decoder.json_handler import (
    WorldEncoder, build_classes_json, build_forest_geojson, build_object_json,
    build_roads_geojson, build_world_json, dump_json, round_half_away, save_world_outputs,
    write_objects_txt,
)
from wrp_decoder.models import ObjectRecord, RoadNet, Rotation, SubNet

from builders import build_1wvr, build_legacy_oprw, end_of_nets, net_record, wvr1_object


def record(name: str, position, object_id: int = 0, yaw: float = 0.0) -> ObjectRecord:
    return ObjectRecord(object_id, 0, name, [0.0] * 12, position, Rotation(yaw=yaw))


class TestRounding:
    @pytest.mark.parametrize('value, decimals, expected', [
        (2.5, 0, 3.0),
        (-2.5, 0, -3.0),
        (1.23456, 3, 1.235),
        (-0.0004, 3, -0.0),
        (float('nan'), 3, 0.0),
        (float('inf'), 2, 0.0),
    ])
    def test_round_half_away(self, value, decimals, expected):
        assert round_half_away(value, decimals) == expected

    def test_encoder_handles_numpy_and_bytes(self):
        doc = {'a': np.arange(3, dtype=np.uint16), 'b': np.float32(1.5), 'c': b'\x01\xff',
               'd': ForestType.CONIFER}
        assert json.loads(json.dumps(doc, cls=WorldEncoder)) == {
            'a': [0, 1, 2], 'b': 1.5, 'c': '01ff', 'd': 'conifer',
        }


class TestWorldJson:
    def test_legacy_world(self):
        world = read(build_legacy_oprw(cell_flags=[0x20, 0, 0, 1], models=['a.p3d']))
        doc = build_world_json(world)
        assert doc['schemaVersion'] == 1
        assert doc['format'] == {'signature': 'OPRW', 'version': 3}
        assert doc['grid'] == {'cellsX': 2, 'cellsY': 2, 'cellSize': 50.0, 'terrainX': 3, 'terrainY': 3}
        assert doc['bounds']['worldSizeX'] == 100.0
        assert doc['stats']['modelCount'] == 1
        assert doc['stats']['cellFlags']['forestCells'] == 1
        assert doc['stats']['cellFlags']['surface'] == {'ground': 3, 'tidal': 1, 'coastline': 0, 'sea': 0}
        assert doc['warnings'] == [
            {'code': 'ROADS_UNSUPPORTED', 'message': 'OPRW format does not contain road/net data'},
        ]

    def test_grid_only_world_has_no_cell_flags(self):
        doc = build_world_json(read(build_1wvr()))
        assert 'cellFlags' not in doc['stats']

    def test_serializes(self):
        out = io.StringIO()
        dump_json(build_world_json(read(build_1wvr())), out, pretty=True)
        assert json.loads(out.getvalue())['format']['signature'] == '1WVR'
        assert out.getvalue().endswith('\n')


class TestObjectJson:
    def test_object_record(self):
        obj = record('tree.p3d', (1.00049, 2.0, -3.00051), object_id=7, yaw=-90.0)
        doc = build_object_json(obj)
        assert doc['sourceClass'] == 'tree.p3d'
        assert doc['pos'] == [1.0, 2.0, -3.001]
        assert doc['rot'] == {'yaw': -90.0, 'pitch': 0.0, 'roll': 0.0}
        assert doc['scale'] == 1.0
        assert doc['meta'] == {'id': 7, 'modelIndex': 0}

    def test_zero_id_is_omitted(self):
        assert build_object_json(record('a.p3d', (0.0, 0.0, 0.0)))['meta'] == {'modelIndex': 0}

    def test_classes(self):
        objects = [
            record('b.p3d', (0.0, 0.0, 0.0)),
            record('a.p3d', (10.0, 0.0, 0.0)),
            record('c.p3d', (1.0, 1.0, 1.0)),
            record('c.p3d', (2.0, 2.0, 2.0)),
        ]
        classes = build_classes_json(objects)['classes']
        assert [c['sourceClass'] for c in classes] == ['c.p3d', 'a.p3d', 'b.p3d']
        assert classes[0]['count'] == 2
        assert classes[0]['centroid'] == [1.5, 1.5, 1.5]

    def test_objects_txt(self, tmp_path):
        path = write_objects_txt([record('tree.p3d', (10.0, 5.0, 20.0), yaw=45.0)],
                                 tmp_path / 'objects.txt', offset_x=200000.0)
        line = path.read_text().strip()
        assert line.startswith('"tree.p3d" 200010.000000 20.000000 5.000000 45.000000')
        assert len(line.split()) == 10


class TestGeoJson:
    def test_roads(self):
        roads = [
            RoadNet('road1', 2, (0.0, 0.0, 0.0), 1.0, [SubNet(50.0, 100.0, (0.0, 0.0, 0.0), 1.0),
                                                       SubNet(100.0, 100.0, (0.0, 0.0, 0.0), 1.0)]),
            RoadNet('empty', 2, (0.0, 0.0, 0.0), 1.0, []),
        ]
        doc = build_roads_geojson(roads)
        assert len(doc['features']) == 1
        assert doc['features'][0]['geometry']['coordinates'] == [[50.0, 100.0], [100.0, 100.0]]
        assert doc['features'][0]['properties']['name'] == 'road1'

    def test_forest(self):
        square = [(0.0, 0.0), (50.0, 0.0), (50.0, 50.0), (0.0, 50.0), (0.0, 0.0)]
        polygons = [
            Polygon(1, ForestType.CONIFER, 1, 2500.4, square),
            Polygon(2, ForestType.MIXED, 1, 10.0, [(0.0, 0.0), (1.0, 1.0)]),
        ]
        doc = build_forest_geojson(polygons, offset_x=200000.0, offset_z=10.0)
        assert doc['type'] == 'FeatureCollection'
        assert len(doc['features']) == 1
        feature = doc['features'][0]
        assert feature['properties'] == {'ID': 1, 'TYPE': 'conifer', 'CELLS': 1, 'AREA': 2500.0}
        assert feature['geometry']['coordinates'][0][2] == [200050.0, 60.0]


class TestSaveOutputs:
    def test_files_written(self, tmp_path):
        data = build_1wvr(
            objects=[wvr1_object((1.0, 0.0, 1.0), 0.0, 'tree.p3d')],
            nets=net_record('road1', subnets=[(1.0, 1.0, (0.0, 0.0, 0.0), 1.0)]) + end_of_nets(),
        )
        written = save_world_outputs(read(data), tmp_path / 'out', pretty=True)
        names = sorted(p.name for p in written)
        assert names == ['classes.json', 'objects.jsonl', 'objects.txt', 'roads.geojson', 'world.json']
        lines = (tmp_path / 'out' / 'objects.jsonl').read_text().splitlines()
        assert json.loads(lines[0])['pos'] == [50.0, 0.0, 50.0]

    def test_no_objects(self, tmp_path):
        written = save_world_outputs(read(build_legacy_oprw()), tmp_path)
        assert sorted(p.name for p in written) == ['classes.json', 'world.json']
        classes = json.loads((tmp_path / 'classes.json').read_text())
        assert classes['classes'] == []
        assert not math.isnan(json.loads((tmp_path / 'world.json').read_text())['bounds']['minElevation'])
