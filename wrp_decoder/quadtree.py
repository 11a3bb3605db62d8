"""
Quadtree codec for the OPRW grid layers.

Each internal node carries a 16-bit mask over a 4x4 arrangement of
children: a set bit is another node, a clear bit is a 4-byte leaf.
A leaf expands to 2x2 bytes, 2x1 shorts or a single 32-bit value.
"""
from typing import Dict, Tuple

import numpy as np

from .base.binary_reader import BinaryReader, WorldParseError

LOG_BRANCH = 2
LEAF_SIZE = 4

# elem_size -> (leaf_log_x, leaf_log_y)
LEAF_SHAPES: Dict[int, Tuple[int, int]] = {
    1: (1, 1),
    2: (1, 0),
    4: (0, 0),
}

ELEMENT_DTYPES = {
    1: np.dtype('<u1'),
    2: np.dtype('<u2'),
    4: np.dtype('<u4'),
}


class QuadTreeError(WorldParseError, ValueError):
    """Invalid quadtree parameters"""
    pass


def _ceil_log2(n: int) -> int:
    if n <= 1:
        return 0
    return (n - 1).bit_length()


def calculate_levels(size_x: int, size_y: int, elem_size: int) -> int:
    """Number of node levels above the leaves needed to cover the grid"""
    leaf_log_x, leaf_log_y = _leaf_shape(elem_size)
    levels_x = (_ceil_log2(size_x) - leaf_log_x + LOG_BRANCH - 1) // LOG_BRANCH
    levels_y = (_ceil_log2(size_y) - leaf_log_y + LOG_BRANCH - 1) // LOG_BRANCH
    return max(levels_x, levels_y, 0)


def calculate_virtual_size(size_x: int, size_y: int, elem_size: int) -> Tuple[int, int]:
    """
    Compute the power-of-two grid the tree actually encodes

    Every level splits both axes by 4, so the virtual grid is the leaf
    shape scaled by 4^levels, with enough levels to cover the request.

    Returns:
        Tuple of (total_x, total_y)
    """
    leaf_log_x, leaf_log_y = _leaf_shape(elem_size)
    levels = calculate_levels(size_x, size_y, elem_size)
    return 1 << (levels * LOG_BRANCH + leaf_log_x), 1 << (levels * LOG_BRANCH + leaf_log_y)


def _leaf_shape(elem_size: int) -> Tuple[int, int]:
    try:
        return LEAF_SHAPES[elem_size]
    except KeyError:
        raise QuadTreeError(f"quadtree: invalid elem_size {elem_size} (must be 1, 2, or 4)") from None


def _leaf_pattern(leaf: bytes, elem_size: int) -> np.ndarray:
    """Arrange a 4-byte leaf as (leaf_h, leaf_w, elem_size)"""
    raw = np.frombuffer(leaf, dtype=np.uint8)
    if elem_size == 4:
        return raw.reshape(1, 1, 4)
    if elem_size == 2:
        return raw.reshape(1, 2, 2)
    return raw.reshape(2, 2, 1)


def _fill_leaf(buf: np.ndarray, x0: int, y0: int, w: int, h: int, leaf: bytes, elem_size: int) -> None:
    if w <= 0 or h <= 0:
        return
    pattern = _leaf_pattern(leaf, elem_size)
    leaf_h, leaf_w = pattern.shape[:2]
    reps_y = -(-h // leaf_h)
    reps_x = -(-w // leaf_w)
    buf[y0:y0 + h, x0:x0 + w] = np.tile(pattern, (reps_y, reps_x, 1))[:h, :w]


def _check_depth(level: int) -> None:
    if level < 1:
        raise QuadTreeError("quadtree: node below leaf level (corrupt mask)")


def _read_node(reader: BinaryReader, buf: np.ndarray, x0: int, y0: int, w: int, h: int,
               elem_size: int, level: int) -> None:
    _check_depth(level)
    mask = reader.read_u16()
    child_w = w // 4
    child_h = h // 4

    for i in range(16):
        cx = x0 + (i % 4) * child_w
        cy = y0 + (i // 4) * child_h
        if mask & (1 << i):
            _read_node(reader, buf, cx, cy, child_w, child_h, elem_size, level - 1)
        else:
            _fill_leaf(buf, cx, cy, child_w, child_h, reader.read_bytes(LEAF_SIZE), elem_size)


def read_quad_tree(reader: BinaryReader, size_x: int, size_y: int, elem_size: int) -> np.ndarray:
    """
    Decode a quadtree-encoded grid

    Args:
        reader: Source reader positioned at the root flag
        size_x: Requested grid width
        size_y: Requested grid height
        elem_size: Bytes per element (1, 2 or 4)

    Returns:
        Flat row-major array of size_x * size_y elements (uint8/16/32)

    Raises:
        QuadTreeError: If elem_size is not 1, 2 or 4, or a node sits
            deeper than the virtual grid allows
    """
    levels = calculate_levels(size_x, size_y, elem_size)
    total_x, total_y = calculate_virtual_size(size_x, size_y, elem_size)
    buf = np.zeros((total_y, total_x, elem_size), dtype=np.uint8)

    if reader.read_u8() == 0:
        _fill_leaf(buf, 0, 0, total_x, total_y, reader.read_bytes(LEAF_SIZE), elem_size)
    else:
        _read_node(reader, buf, 0, 0, total_x, total_y, elem_size, levels)

    cropped = np.ascontiguousarray(buf[:size_y, :size_x])
    return cropped.view(ELEMENT_DTYPES[elem_size]).reshape(-1).copy()


def _skip_node(reader: BinaryReader, level: int) -> None:
    _check_depth(level)
    mask = reader.read_u16()
    for i in range(16):
        if mask & (1 << i):
            _skip_node(reader, level - 1)
        else:
            reader.read_bytes(LEAF_SIZE)


def skip_quad_tree(reader: BinaryReader, size_x: int, size_y: int, elem_size: int) -> None:
    """Consume a quadtree without decoding it, with the same depth bound as read_quad_tree"""
    levels = calculate_levels(size_x, size_y, elem_size)
    if reader.read_u8() == 0:
        reader.read_bytes(LEAF_SIZE)
        return
    _skip_node(reader, levels)
