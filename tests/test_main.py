"""
Tests for the command line entry point
"""
import json

import pytest

from wrp_decoder.main import main

from builders import build_4wvr, build_legacy_oprw, transform

SQUARE = 'ca\\plants\\les_ctverec_pruchozi.p3d'


@pytest.fixture
def forest_world(tmp_path):
    objects = [
        (transform((x, 0.0, z)), i, SQUARE)
        for i, (x, z) in enumerate([(25.0, 25.0), (75.0, 25.0), (25.0, 75.0), (75.0, 75.0), (325.0, 25.0)])
    ]
    path = tmp_path / 'forest.wrp'
    path.write_bytes(build_4wvr(texture_names=['grass.paa'], objects=objects))
    return path


class TestInfo:
    def test_writes_output_directory(self, forest_world, tmp_path):
        out = tmp_path / 'info'
        assert main(['info', str(forest_world), str(out)]) == 0
        for name in ('world.json', 'objects.jsonl', 'objects.txt', 'classes.json'):
            assert (out / name).exists()
        assert (out / 'logs' / 'wrp_decoder.log').exists()
        world = json.loads((out / 'world.json').read_text())
        assert world['stats']['objectCount'] == 5
        assert len((out / 'objects.jsonl').read_text().splitlines()) == 5

    def test_default_output_directory(self, forest_world):
        assert main(['info', str(forest_world)]) == 0
        assert (forest_world.parent / 'forest_info' / 'world.json').exists()

    def test_json_to_stdout(self, forest_world, capsys):
        assert main(['info', str(forest_world), '--json']) == 0
        doc = json.loads(capsys.readouterr().out)
        assert doc['format'] == {'signature': '4WVR', 'version': 4}
        assert doc['stats']['objectCount'] == 0

    def test_dash_output_means_stdout(self, tmp_path, capsys):
        path = tmp_path / 'legacy.wrp'
        path.write_bytes(build_legacy_oprw())
        assert main(['info', str(path), '-', '--pretty']) == 0
        assert json.loads(capsys.readouterr().out)['format']['version'] == 3

    def test_summary_on_stderr(self, forest_world, tmp_path, capsys):
        assert main(['info', str(forest_world), str(tmp_path / 'o')]) == 0
        err = capsys.readouterr().err
        assert 'Parsed:' in err
        assert 'Objects: 5' in err

    def test_missing_file(self, tmp_path):
        assert main(['info', str(tmp_path / 'missing.wrp'), '--json']) == 1

    def test_bad_signature(self, tmp_path):
        path = tmp_path / 'bad.wrp'
        path.write_bytes(b'NOPE' + bytes(16))
        assert main(['info', str(path), '--json']) == 1


class TestForest:
    def test_writes_geojson(self, forest_world, tmp_path):
        out = tmp_path / 'forest.geojson'
        assert main(['forest', str(forest_world), str(out)]) == 0
        doc = json.loads(out.read_text())
        assert len(doc['features']) == 2
        first = doc['features'][0]
        assert first['properties'] == {'ID': 1, 'TYPE': 'mixed', 'CELLS': 4, 'AREA': 10000.0}
        xs = [p[0] for p in first['geometry']['coordinates'][0]]
        assert min(xs) == 200000.0

    def test_offsets(self, forest_world, capsys):
        assert main(['forest', str(forest_world), '-', '--offset-x', '0', '--offset-z', '100']) == 0
        doc = json.loads(capsys.readouterr().out)
        zs = [p[1] for p in doc['features'][0]['geometry']['coordinates'][0]]
        assert min(zs) == 100.0

    def test_index_selects_one_polygon(self, forest_world, capsys):
        assert main(['forest', str(forest_world), '-', '--index', '1']) == 0
        doc = json.loads(capsys.readouterr().out)
        assert [f['properties']['ID'] for f in doc['features']] == [2]

    def test_index_out_of_range(self, forest_world, tmp_path):
        assert main(['forest', str(forest_world), str(tmp_path / 'x.geojson'), '--index', '5']) == 1

    def test_no_objects(self, tmp_path):
        path = tmp_path / 'empty.wrp'
        path.write_bytes(build_4wvr())
        assert main(['forest', str(path), '-']) == 1

    def test_no_forest_objects(self, tmp_path):
        path = tmp_path / 'houses.wrp'
        path.write_bytes(build_4wvr(objects=[(transform(), 1, 'house.p3d')]))
        assert main(['forest', str(path), '-']) == 1
