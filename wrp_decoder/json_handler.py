"""
JSON handling for decoded world data.
Builds the world summary, object listings and GeoJSON documents
written by the command line tools.
"""
import json
import math
import dataclasses
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, TextIO, Union

import numpy as np

from .forest import Polygon
from .models import ObjectRecord, RoadNet, WorldData

SCHEMA_VERSION = 1


class WorldEncoder(json.JSONEncoder):
    """JSON encoder for world data structures"""

    def default(self, obj: Any) -> Any:
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
        elif isinstance(obj, Enum):
            return obj.value
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, np.generic):
            return obj.item()
        elif isinstance(obj, Path):
            return str(obj)
        elif isinstance(obj, bytes):
            return obj.hex()
        return super().default(obj)


def round_half_away(value: float, decimals: int = 3) -> float:
    """Round half away from zero; non-finite values become 0"""
    if not math.isfinite(value):
        return 0.0
    scale = 10 ** decimals
    return math.copysign(math.floor(abs(value) * scale + 0.5), value) / scale


def build_world_json(world: WorldData) -> Dict[str, Any]:
    """Format, grid, bounds, stats and warnings of a decoded world"""
    stats = world.stats
    stats_doc: Dict[str, Any] = {
        'textureCount': stats.texture_count,
        'modelCount': stats.model_count,
        'objectCount': stats.object_count,
        'peakCount': stats.peak_count,
        'roadNetCount': stats.road_net_count,
    }
    if stats.cell_flags is not None:
        flags = stats.cell_flags
        stats_doc['cellFlags'] = {
            'forestCells': flags.forest_cells,
            'roadwayCells': flags.roadway_cells,
            'totalCells': flags.total_cells,
            'surface': dataclasses.asdict(flags.surface),
        }

    return {
        'schemaVersion': SCHEMA_VERSION,
        'format': {'signature': world.format.signature, 'version': world.format.version},
        'grid': {
            'cellsX': world.grid.land_size_x,
            'cellsY': world.grid.land_size_y,
            'cellSize': world.grid.cell_size,
            'terrainX': world.grid.terrain_size_x,
            'terrainY': world.grid.terrain_size_y,
        },
        'bounds': {
            'minElevation': world.bounds.min_elevation,
            'maxElevation': world.bounds.max_elevation,
            'worldSizeX': world.bounds.world_size_x,
            'worldSizeY': world.bounds.world_size_y,
        },
        'stats': stats_doc,
        'warnings': [{'code': w.kind, 'message': w.message} for w in world.warnings],
    }


def build_object_json(obj: ObjectRecord) -> Dict[str, Any]:
    """One objects.jsonl record"""
    meta: Dict[str, Any] = {}
    if obj.object_id != 0:
        meta['id'] = obj.object_id
    meta['modelIndex'] = obj.model_index
    return {
        'sourceClass': obj.model_name,
        'pos': [round_half_away(v) for v in obj.position],
        'rot': {
            'yaw': round_half_away(obj.rotation.yaw),
            'pitch': round_half_away(obj.rotation.pitch),
            'roll': round_half_away(obj.rotation.roll),
        },
        'scale': round_half_away(obj.scale),
        'meta': meta,
    }


def build_classes_json(objects: Iterable[ObjectRecord]) -> Dict[str, Any]:
    """Unique model names with counts and centroids, most used first"""
    classes: Dict[str, List[float]] = {}
    for obj in objects:
        acc = classes.setdefault(obj.model_name, [0, 0.0, 0.0, 0.0])
        acc[0] += 1
        acc[1] += obj.position[0]
        acc[2] += obj.position[1]
        acc[3] += obj.position[2]

    entries = [
        {
            'sourceClass': name,
            'count': count,
            'centroid': [round_half_away(s / count, 2) for s in (sx, sy, sz)],
        }
        for name, (count, sx, sy, sz) in classes.items()
    ]
    entries.sort(key=lambda e: (-e['count'], e['sourceClass']))
    return {'schemaVersion': SCHEMA_VERSION, 'classes': entries}


def build_roads_geojson(roads: Sequence[RoadNet]) -> Dict[str, Any]:
    """Road nets as LineStrings through their subnet positions"""
    features = []
    for net in roads:
        if not net.subnets:
            continue
        features.append({
            'type': 'Feature',
            'properties': {'name': net.name, 'type': net.type, 'scale': net.scale},
            'geometry': {
                'type': 'LineString',
                'coordinates': [[sn.x, sn.y] for sn in net.subnets],
            },
        })
    return {'type': 'FeatureCollection', 'features': features}


def build_forest_geojson(polygons: Sequence[Polygon], offset_x: float = 0.0,
                         offset_z: float = 0.0) -> Dict[str, Any]:
    """
    Forest polygons as a GeoJSON FeatureCollection

    Properties use DBF-compatible names so the file converts cleanly
    to a shapefile. Polygons without a closed exterior are dropped.
    """
    def offset_ring(ring):
        return [[round_half_away(x + offset_x, 2), round_half_away(z + offset_z, 2)] for x, z in ring]

    features = []
    for polygon in polygons:
        if len(polygon.exterior) < 4:
            continue
        rings = [offset_ring(polygon.exterior)] + [offset_ring(hole) for hole in polygon.holes]
        features.append({
            'type': 'Feature',
            'properties': {
                'ID': polygon.id,
                'TYPE': polygon.type.value,
                'CELLS': polygon.cell_count,
                'AREA': round_half_away(polygon.area, 0),
            },
            'geometry': {'type': 'Polygon', 'coordinates': rings},
        })
    return {'type': 'FeatureCollection', 'features': features}


def dump_json(doc: Any, out: TextIO, pretty: bool = False) -> None:
    json.dump(doc, out, cls=WorldEncoder, indent=2 if pretty else None)
    out.write('\n')


def write_json(path: Union[str, Path], doc: Any, pretty: bool = False) -> Path:
    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        dump_json(doc, f, pretty)
    return path


def write_objects_jsonl(objects: Iterable[ObjectRecord], path: Union[str, Path]) -> Path:
    """One compact JSON object per line"""
    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        for obj in objects:
            f.write(json.dumps(build_object_json(obj), cls=WorldEncoder))
            f.write('\n')
    return path


def write_objects_txt(objects: Iterable[ObjectRecord], path: Union[str, Path],
                      offset_x: float = 0.0, offset_z: float = 0.0) -> Path:
    """
    Terrain Builder object import list

    Each line: "model" x y z yaw pitch roll sx sy sz, with the world
    x/z plane offset and the height as the third coordinate.
    """
    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        for obj in objects:
            x = obj.position[0] + offset_x
            y = obj.position[2] + offset_z
            z = obj.position[1]
            values = (x, y, z, obj.rotation.yaw, obj.rotation.pitch, obj.rotation.roll,
                      obj.scale, obj.scale, obj.scale)
            f.write(f'"{obj.model_name}" ' + ' '.join(f'{v:.6f}' for v in values) + '\n')
    return path


def save_world_outputs(world: WorldData, output_dir: Union[str, Path], pretty: bool = False,
                       offset_x: float = 0.0, offset_z: float = 0.0) -> List[Path]:
    """
    Write the info tool outputs for a decoded world

    Args:
        world: Decoded world
        output_dir: Directory to create and fill
        pretty: Indent JSON documents
        offset_x: X offset for objects.txt
        offset_z: Z offset for objects.txt

    Returns:
        Paths of the files written
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = [write_json(output_dir / 'world.json', build_world_json(world), pretty)]
    if world.objects:
        written.append(write_objects_jsonl(world.objects, output_dir / 'objects.jsonl'))
        written.append(write_objects_txt(world.objects, output_dir / 'objects.txt', offset_x, offset_z))
    written.append(write_json(output_dir / 'classes.json', build_classes_json(world.objects), pretty))
    if world.roads:
        written.append(write_json(output_dir / 'roads.geojson', build_roads_geojson(world.roads), pretty))
    return written
