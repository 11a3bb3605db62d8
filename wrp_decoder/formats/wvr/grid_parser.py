"""
Shared layout of the grid-only 4WVR and 1WVR formats.
"""
from typing import List, Optional

import numpy as np

from ...base.world_parser import WorldParserBase
from ...models import GridInfo, TextureEntry

CELL_SIZE = 50.0
ELEVATION_SCALE = 0.05
TEXTURE_NAME_SIZE = 32


class GridOnlyParser(WorldParserBase):
    """Header, u16 elevation and texture tables, fixed texture-name slots"""

    TEXTURE_SLOTS = 0

    def _read_grid(self) -> GridInfo:
        cells_x = self.reader.read_u32()
        cells_y = self.reader.read_u32()
        self.logger.debug(f"Grid: {cells_x}x{cells_y}")
        return GridInfo(cells_x, cells_y, CELL_SIZE, cells_x, cells_y)

    def _read_elevations(self, count: int) -> np.ndarray:
        raw = self.reader.read_u16_slice(count)
        return (raw.astype(np.float64) * ELEVATION_SCALE).astype(np.float32)

    def _read_texture_names(self) -> List[TextureEntry]:
        return [
            TextureEntry(self.reader.read_fixed_string(TEXTURE_NAME_SIZE))
            for _ in range(self.TEXTURE_SLOTS)
        ]

    def _read_record(self, size: int) -> Optional[bytes]:
        """Read one whole object record, or None when the stream runs out"""
        data = self.reader.stream.read(size)
        if len(data) < size:
            return None
        return data

    @staticmethod
    def _count_textures(textures: List[TextureEntry]) -> int:
        return sum(1 for t in textures if t.filename)
