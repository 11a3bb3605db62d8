"""
Decoded world data structures.
Uses dataclasses for clean, type-safe implementations.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

Vec3 = Tuple[float, float, float]


@dataclass
class Rotation:
    """Euler rotation in degrees"""
    yaw: float = 0.0
    pitch: float = 0.0
    roll: float = 0.0


@dataclass
class Pose:
    """Position, rotation and uniform scale decomposed from a transform"""
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: Rotation = field(default_factory=Rotation)
    scale: float = 1.0


@dataclass
class FormatInfo:
    signature: str
    version: int


@dataclass
class GridInfo:
    """Land grid (flags, textures) and terrain grid (elevation)"""
    land_size_x: int = 0
    land_size_y: int = 0
    cell_size: float = 0.0
    terrain_size_x: int = 0
    terrain_size_y: int = 0

    @property
    def land_cells(self) -> int:
        return self.land_size_x * self.land_size_y

    @property
    def terrain_cells(self) -> int:
        return self.terrain_size_x * self.terrain_size_y


@dataclass
class BoundsInfo:
    min_elevation: float = 0.0
    max_elevation: float = 0.0
    world_size_x: float = 0.0
    world_size_y: float = 0.0


@dataclass
class SurfaceCounts:
    ground: int = 0
    tidal: int = 0
    coastline: int = 0
    sea: int = 0


@dataclass
class CellFlagsInfo:
    """Summary of the per-cell bit flags"""
    forest_cells: int = 0
    roadway_cells: int = 0
    total_cells: int = 0
    surface: SurfaceCounts = field(default_factory=SurfaceCounts)


@dataclass
class StatsInfo:
    texture_count: int = 0
    model_count: int = 0
    object_count: int = 0
    peak_count: int = 0
    road_net_count: int = 0
    cell_flags: Optional[CellFlagsInfo] = None


@dataclass
class WorldWarning:
    """Non-fatal anomaly found while decoding"""
    kind: str
    message: str


@dataclass
class TextureEntry:
    filename: str
    color: int = 0


@dataclass
class ObjectRecord:
    """A placed object instance"""
    object_id: int
    model_index: int
    model_name: str
    transform: List[float]
    position: Vec3
    rotation: Rotation
    scale: float = 1.0


@dataclass
class SubNet:
    x: float
    y: float
    triplet: Vec3
    stepping: float


@dataclass
class RoadNet:
    """Road network from the trailing 1WVR net section"""
    name: str
    type: int
    origin: Vec3
    scale: float
    subnets: List[SubNet] = field(default_factory=list)


@dataclass
class RoadLinkPose:
    p3d_path: str
    transform: List[float]
    pose: Pose


@dataclass
class RoadLink:
    """Road link attached to one land cell (modern OPRW)"""
    positions: List[Vec3]
    object_id: int
    connection_types: Optional[List[int]] = None
    pose: Optional[RoadLinkPose] = None


@dataclass
class WorldData:
    """Normalized output of any world parser"""
    format: FormatInfo
    grid: GridInfo
    elevations: np.ndarray
    bounds: BoundsInfo = field(default_factory=BoundsInfo)
    stats: StatsInfo = field(default_factory=StatsInfo)
    cell_bit_flags: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.uint32))
    cell_ext_flags: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.uint32))
    cell_env_sounds: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.uint8))
    cell_texture_indexes: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.uint16))
    textures: List[TextureEntry] = field(default_factory=list)
    models: List[str] = field(default_factory=list)
    objects: List[ObjectRecord] = field(default_factory=list)
    roads: List[RoadNet] = field(default_factory=list)
    road_links: List[List[RoadLink]] = field(default_factory=list)
    peaks: List[Vec3] = field(default_factory=list)
    warnings: List[WorldWarning] = field(default_factory=list)
    app_id: int = 0
    map_info: bytes = b''


@dataclass
class ReadOptions:
    """Caller options for a decode pass"""
    skip_objects: bool = False
