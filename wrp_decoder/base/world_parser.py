"""
Base class for world file parsers.
Holds the pieces every layout shares: warnings, model lookup,
transform decomposition and the derived bounds/stats.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

import numpy as np

from .binary_reader import BinaryReader
from ..models import (
    BoundsInfo, CellFlagsInfo, GridInfo, ObjectRecord, ReadOptions,
    SurfaceCounts, WorldData, WorldWarning,
)
from ..transform import decompose_transform
from ..utils import get_logger

# Cell bit flags
FOREST_FLAG = 0x20
ROADWAY_FLAG = 0x40
SURFACE_MASK = 0x03

# Warning kinds
INVALID_MODEL_INDEX = 'INVALID_MODEL_INDEX'
ROADS_UNSUPPORTED = 'ROADS_UNSUPPORTED'
NET_PARSE_ERROR = 'NET_PARSE_ERROR'


def compute_cell_flags(flags: np.ndarray) -> CellFlagsInfo:
    """Summarize forest/roadway bits and surface classes"""
    flags = np.asarray(flags, dtype=np.uint32)
    surface = np.bincount((flags & SURFACE_MASK).astype(np.int64), minlength=4)
    return CellFlagsInfo(
        forest_cells=int(np.count_nonzero(flags & FOREST_FLAG)),
        roadway_cells=int(np.count_nonzero(flags & ROADWAY_FLAG)),
        total_cells=int(flags.size),
        surface=SurfaceCounts(
            ground=int(surface[0]),
            tidal=int(surface[1]),
            coastline=int(surface[2]),
            sea=int(surface[3]),
        ),
    )


def compute_bounds(elevations: np.ndarray, grid: GridInfo) -> BoundsInfo:
    """Elevation range plus world extent of the land grid"""
    bounds = BoundsInfo(
        world_size_x=float(grid.land_size_x) * grid.cell_size,
        world_size_y=float(grid.land_size_y) * grid.cell_size,
    )
    if len(elevations):
        bounds.min_elevation = float(np.min(elevations))
        bounds.max_elevation = float(np.max(elevations))
    return bounds


def build_model_index(objects: Sequence[ObjectRecord]) -> List[str]:
    """
    Synthesize a model table from object names

    Names are de-duplicated in first-seen order and each object's
    model_index is pointed at its entry.
    """
    models: List[str] = []
    lookup: Dict[str, int] = {}
    for obj in objects:
        index = lookup.get(obj.model_name)
        if index is None:
            index = len(models)
            lookup[obj.model_name] = index
            models.append(obj.model_name)
        obj.model_index = index
    return models


class WorldParserBase(ABC):
    """Base class for one decode pass over a world stream"""

    SIGNATURE = ''

    def __init__(self, reader: BinaryReader, version: int, options: Optional[ReadOptions] = None):
        """
        Initialize the parser

        Args:
            reader: Reader positioned right after the header consumed by detection
            version: Format version (implicit tag for grid-only layouts)
            options: Caller options
        """
        self.reader = reader
        self.version = version
        self.options = options or ReadOptions()
        self.warnings: List[WorldWarning] = []
        self.logger = get_logger(self.__class__.__name__)

    @abstractmethod
    def parse(self) -> WorldData:
        """Decode the rest of the stream into WorldData"""
        pass

    def _warn(self, kind: str, message: str) -> None:
        self.warnings.append(WorldWarning(kind, message))
        self.logger.warning(f"{kind}: {message}")

    def _lookup_model(self, object_id: int, model_index: int, models: Sequence[str],
                      raw_index: Optional[int] = None) -> str:
        """
        Resolve a model name, warning when the index is out of range

        Returns:
            Model name, or '' for an invalid index
        """
        if 0 <= model_index < len(models):
            return models[model_index]
        shown = model_index if raw_index is None else raw_index
        self._warn(
            INVALID_MODEL_INDEX,
            f"object {object_id} references model index {shown} (max {len(models) - 1})"
        )
        return ''

    @staticmethod
    def _make_object(object_id: int, model_index: int, model_name: str,
                     transform: Sequence[float]) -> ObjectRecord:
        transform = [float(v) for v in transform]
        pose = decompose_transform(transform)
        return ObjectRecord(
            object_id=object_id,
            model_index=model_index,
            model_name=model_name,
            transform=transform,
            position=pose.position,
            rotation=pose.rotation,
            scale=pose.scale,
        )

    def _log_summary(self, world: WorldData) -> None:
        grid = world.grid
        self.logger.info(
            f"{world.format.signature} v{world.format.version}: "
            f"land {grid.land_size_x}x{grid.land_size_y}, terrain {grid.terrain_size_x}x{grid.terrain_size_y}, "
            f"{world.stats.object_count} objects, {world.stats.model_count} models, "
            f"{len(world.warnings)} warnings"
        )
