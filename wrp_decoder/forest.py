"""
Forest shape extraction.

Rebuilds forest-stand polygons from placed forest block objects:
blocks are classified by model name, snapped to a 50 m grid, grouped
into connected components by flood fill and traced into rings.
"""
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Sequence, Tuple

from .models import ObjectRecord
from .utils import get_logger

logger = get_logger(__name__)

GRID_CELL_SIZE = 50.0
GRID_HALF = GRID_CELL_SIZE / 2
PHASE_FALLBACK_STEP = 5.0

BLOCK_PREFIX = 'les'
EXCLUDED_MARKERS = ('mlaz', 'singlestrom')
TRIANGLE_MARKER = 'trojuhelnik'
CONIFER_MARKER = 'jehl'

Point = Tuple[float, float]
Ring = List[Point]
CellKey = Tuple[int, int]
Vertex = Tuple[int, int]


class ForestType(Enum):
    MIXED = 'mixed'
    CONIFER = 'conifer'


class Direction(Enum):
    N = 0
    E = 1
    S = 2
    W = 3


# Sides covered by a triangular half-cell, keyed by quantized yaw
TRIANGLE_COVERAGE = {
    0: (Direction.N, Direction.W),
    90: (Direction.N, Direction.E),
    180: (Direction.E, Direction.S),
    270: (Direction.S, Direction.W),
}

# (d_col, d_row, side of this cell, facing side of the neighbour)
NEIGHBOURS = (
    (-1, 0, Direction.W, Direction.E),
    (1, 0, Direction.E, Direction.W),
    (0, -1, Direction.S, Direction.N),
    (0, 1, Direction.N, Direction.S),
)

# Neighbour offset and the side it must cover for a shared edge
ACROSS = {
    Direction.S: (0, -1, Direction.N),
    Direction.E: (1, 0, Direction.W),
    Direction.N: (0, 1, Direction.S),
    Direction.W: (-1, 0, Direction.E),
}


@dataclass
class ForestBlock:
    """A classified forest block placement"""
    model: str
    position: Point
    forest_type: ForestType
    is_square: bool
    yaw: int


@dataclass
class CellInfo:
    is_square: bool
    tri_yaw: int = 0

    def covers(self, direction: Direction) -> bool:
        if self.is_square:
            return True
        return direction in TRIANGLE_COVERAGE.get(self.tri_yaw, ())


@dataclass
class Polygon:
    """Merged forest area"""
    id: int
    type: ForestType
    cell_count: int
    area: float
    exterior: Ring = field(default_factory=list)
    holes: List[Ring] = field(default_factory=list)


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _pos_mod(x: float, m: float) -> float:
    r = math.fmod(x, m)
    if r < 0:
        r += m
    return r


def base_name(model_name: str) -> str:
    """Lower-cased file name without directory or .p3d extension"""
    name = model_name.lower()
    cut = max(name.rfind('\\'), name.rfind('/'))
    if cut >= 0:
        name = name[cut + 1:]
    if len(name) > 4 and name.endswith('.p3d'):
        name = name[:-4]
    return name


def normalize_yaw(yaw: float) -> int:
    """Quantize a yaw in degrees to 0, 90, 180 or 270"""
    deg = _pos_mod(yaw, 360.0)
    return (_round_half_away(deg / 90.0) % 4) * 90


def classify_forest(objects: Iterable[ObjectRecord]) -> List[ForestBlock]:
    blocks = []
    for obj in objects:
        base = base_name(obj.model_name)
        if not base.startswith(BLOCK_PREFIX):
            continue
        if any(marker in base for marker in EXCLUDED_MARKERS):
            continue
        blocks.append(ForestBlock(
            model=obj.model_name,
            position=(obj.position[0], obj.position[2]),
            forest_type=ForestType.CONIFER if CONIFER_MARKER in base else ForestType.MIXED,
            is_square=TRIANGLE_MARKER not in base,
            yaw=normalize_yaw(obj.rotation.yaw),
        ))
    return blocks


class ForestGrid:
    """Occupied cells of one forest type on the 50 m block grid"""

    def __init__(self, blocks: Sequence[ForestBlock]):
        self.cells: Dict[CellKey, CellInfo] = {}
        self.phase_x = 0.0
        self.phase_z = 0.0
        if not blocks:
            return

        self.phase_x, self.phase_z = self.detect_phase(blocks)
        for block in blocks:
            key = self.snap(block.position)
            current = self.cells.get(key)
            if current is not None and current.is_square:
                continue
            if block.is_square:
                self.cells[key] = CellInfo(True)
            else:
                self.cells[key] = CellInfo(False, block.yaw)

    @staticmethod
    def detect_phase(blocks: Sequence[ForestBlock]) -> Point:
        """
        Sub-cell offset of the block grid

        Triangles sit exactly on the grid, so the first one defines the
        phase. Without triangles the first block is rounded to 5 m.
        """
        for block in blocks:
            if not block.is_square:
                return (_pos_mod(block.position[0], GRID_CELL_SIZE),
                        _pos_mod(block.position[1], GRID_CELL_SIZE))
        x, z = blocks[0].position
        sx = _round_half_away(x / PHASE_FALLBACK_STEP) * PHASE_FALLBACK_STEP
        sz = _round_half_away(z / PHASE_FALLBACK_STEP) * PHASE_FALLBACK_STEP
        return _pos_mod(sx, GRID_CELL_SIZE), _pos_mod(sz, GRID_CELL_SIZE)

    def snap(self, position: Point) -> CellKey:
        return (_round_half_away((position[0] - self.phase_x) / GRID_CELL_SIZE),
                _round_half_away((position[1] - self.phase_z) / GRID_CELL_SIZE))

    def vertex_world(self, vertex: Vertex) -> Point:
        return (self.phase_x + vertex[0] * GRID_CELL_SIZE - GRID_HALF,
                self.phase_z + vertex[1] * GRID_CELL_SIZE - GRID_HALF)

    def components(self) -> List[List[CellKey]]:
        """Connected components by flood fill, largest first"""
        visited = set()
        components = []
        for start in self.cells:
            if start in visited:
                continue
            visited.add(start)
            component = []
            queue = deque([start])
            while queue:
                col, row = current = queue.popleft()
                component.append(current)
                info = self.cells[current]
                for d_col, d_row, side, facing in NEIGHBOURS:
                    key = (col + d_col, row + d_row)
                    if key in visited:
                        continue
                    neighbour = self.cells.get(key)
                    if neighbour is None:
                        continue
                    if info.covers(side) and neighbour.covers(facing):
                        visited.add(key)
                        queue.append(key)
            components.append(component)
        components.sort(key=len, reverse=True)
        return components

    def trace(self, component: Sequence[CellKey]) -> Polygon:
        cells = {key: self.cells[key] for key in component}
        edges: Dict[Vertex, List[Vertex]] = {}

        def is_boundary(col: int, row: int, side: Direction) -> bool:
            d_col, d_row, facing = ACROSS[side]
            neighbour = cells.get((col + d_col, row + d_row))
            return neighbour is None or not neighbour.covers(facing)

        def add_edge(start: Vertex, end: Vertex) -> None:
            edges.setdefault(start, []).append(end)

        area = 0.0
        for col, row in component:
            info = cells[(col, row)]
            sw, se = (col, row), (col + 1, row)
            ne, nw = (col + 1, row + 1), (col, row + 1)
            side_edges = {
                Direction.S: (sw, se),
                Direction.E: (se, ne),
                Direction.N: (ne, nw),
                Direction.W: (nw, sw),
            }

            if info.is_square:
                for side in (Direction.S, Direction.E, Direction.N, Direction.W):
                    if is_boundary(col, row, side):
                        add_edge(*side_edges[side])
                area += GRID_CELL_SIZE * GRID_CELL_SIZE
                continue

            covered = TRIANGLE_COVERAGE.get(info.tri_yaw)
            if covered is None:
                continue
            for side in covered:
                if is_boundary(col, row, side):
                    add_edge(*side_edges[side])
            # Hypotenuse
            if info.tri_yaw == 0:
                add_edge(sw, ne)
            elif info.tri_yaw == 90:
                add_edge(nw, se)
            elif info.tri_yaw == 180:
                add_edge(ne, sw)
            else:
                add_edge(se, nw)
            area += GRID_CELL_SIZE * GRID_CELL_SIZE / 2

        rings = self._chain_rings(edges, 4 * len(component) + 4)

        polygon = Polygon(id=0, type=ForestType.MIXED, cell_count=len(component), area=area)
        if len(rings) == 1:
            polygon.exterior = rings[0]
        elif rings:
            exterior_index = max(range(len(rings)), key=lambda i: abs(shoelace(rings[i])))
            polygon.exterior = rings[exterior_index]
            polygon.holes = [ring for i, ring in enumerate(rings) if i != exterior_index]
        return polygon

    def _chain_rings(self, edges: Dict[Vertex, List[Vertex]], max_edges: int) -> List[Ring]:
        rings = []
        for start in list(edges):
            while edges[start]:
                ring = []
                current = start
                for _ in range(max_edges):
                    ring.append(self.vertex_world(current))
                    outgoing = edges.get(current)
                    if not outgoing:
                        ring.append(self.vertex_world(start))
                        break
                    nxt = outgoing.pop()
                    if nxt == start:
                        ring.append(self.vertex_world(start))
                        break
                    current = nxt
                if len(ring) >= 4:
                    rings.append(ring)
        return rings


def shoelace(ring: Sequence[Point]) -> float:
    """Signed area of a closed ring"""
    if len(ring) < 3:
        return 0.0
    total = 0.0
    for (x0, y0), (x1, y1) in zip(ring, ring[1:]):
        total += x0 * y1 - x1 * y0
    return total / 2


def extract_from_objects(objects: Sequence[ObjectRecord]) -> List[Polygon]:
    """
    Extract forest polygons from placed objects

    Each forest type is gridded and traced on its own; the merged
    result is sorted by area and numbered from 1.
    """
    blocks = classify_forest(objects)
    if not blocks:
        return []

    by_type: Dict[ForestType, List[ForestBlock]] = {}
    for block in blocks:
        by_type.setdefault(block.forest_type, []).append(block)

    polygons = []
    for forest_type in (ForestType.MIXED, ForestType.CONIFER):
        typed_blocks = by_type.get(forest_type)
        if not typed_blocks:
            continue
        grid = ForestGrid(typed_blocks)
        for component in grid.components():
            polygon = grid.trace(component)
            polygon.type = forest_type
            polygons.append(polygon)
        logger.debug(f"{forest_type.value}: {len(typed_blocks)} blocks, {len(grid.cells)} cells")

    polygons.sort(key=lambda p: p.area, reverse=True)
    for index, polygon in enumerate(polygons, start=1):
        polygon.id = index
    return polygons
