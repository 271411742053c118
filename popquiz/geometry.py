"""
Planar geometry helpers: polygon rings, bounds, centroids, vertex keys and
the screen projection.

Coordinates are GeoJSON order (x, y) = (lon, lat). Polygons are lists of
rings, the first ring being the exterior; a region is a list of polygons.

The projection maps geographic coordinates onto a fixed drawing surface:
- One uniform scale for both axes (no distortion between compared regions)
- The scaled bounding box is centred on the canvas
- Y is flipped: geographic north is screen up (decreasing screen y)
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from popquiz import config

Point = Tuple[float, float]
Ring = Sequence[Sequence[float]]
Polygon = Sequence[Ring]
Bounds = Tuple[float, float, float, float]  # (min_x, min_y, max_x, max_y)


def polygons_of(geometry: Optional[dict]) -> Optional[List[Polygon]]:
    """
    Polygon parts of a GeoJSON geometry mapping.

    Returns:
        List of polygons for Polygon / MultiPolygon geometries, None for a
        missing geometry or any other geometry type.
    """
    if not geometry:
        return None
    geom_type = geometry.get('type')
    coords = geometry.get('coordinates')
    if coords is None:
        return None
    if geom_type == 'Polygon':
        return [coords]
    if geom_type == 'MultiPolygon':
        return list(coords)
    return None


def iter_feature_rings(geometry: Optional[dict]) -> Iterator[Ring]:
    """Yield every ring (exterior and holes) of every polygon part."""
    for polygon in polygons_of(geometry) or []:
        for ring in polygon:
            yield ring


def compute_bounds(regions: Iterable[Sequence[Polygon]]) -> Bounds:
    """
    Axis-aligned bounding box over every coordinate of every ring of every region.

    Args:
        regions: One list of polygons per region

    Returns:
        (min_x, min_y, max_x, max_y)
    """
    min_x = min_y = np.inf
    max_x = max_y = -np.inf
    for polygons in regions:
        for polygon in polygons:
            for ring in polygon:
                if len(ring) == 0:
                    continue
                pts = np.asarray(ring, dtype=float)[:, :2]
                lo = pts.min(axis=0)
                hi = pts.max(axis=0)
                min_x = min(min_x, lo[0])
                min_y = min(min_y, lo[1])
                max_x = max(max_x, hi[0])
                max_y = max(max_y, hi[1])

    if not np.isfinite(min_x):
        raise ValueError("Cannot compute bounds of an empty region set")
    return (float(min_x), float(min_y), float(max_x), float(max_y))


@dataclass(frozen=True)
class Projection:
    """
    Uniform-scale mapping from geographic to screen coordinates.

        screen_x =  scale * x + tx
        screen_y = -scale * y + ty
    """
    scale: float
    tx: float
    ty: float

    def __call__(self, point: Sequence[float]) -> Point:
        x, y = point[0], point[1]
        return (self.scale * x + self.tx, -self.scale * y + self.ty)

    def project_ring(self, ring: Ring) -> np.ndarray:
        """Project a whole ring; returns an (n, 2) float array."""
        if len(ring) == 0:
            return np.empty((0, 2))
        pts = np.asarray(ring, dtype=float)[:, :2]
        out = np.empty_like(pts)
        out[:, 0] = self.scale * pts[:, 0] + self.tx
        out[:, 1] = -self.scale * pts[:, 1] + self.ty
        return out


def create_projector(bounds: Bounds,
                     width: float = config.CANVAS_WIDTH,
                     height: float = config.CANVAS_HEIGHT,
                     pad: float = config.CANVAS_PADDING) -> Projection:
    """
    Fit the bounding box inside the padded canvas, preserving aspect ratio.

    A zero-width or zero-height box uses extent 1 for that axis when choosing
    the scale, so degenerate input never divides by zero.

    Example:
        bounds (0, 0, 2, 1) on a 100 x 100 canvas with pad 0:
        scale = min(100/2, 100/1) = 50, box drawn 100 wide and 50 tall,
        centred vertically (y from 25 to 75)
    """
    min_x, min_y, max_x, max_y = bounds
    dx = max_x - min_x
    dy = max_y - min_y
    sx = (width - 2 * pad) / (dx or 1)
    sy = (height - 2 * pad) / (dy or 1)
    s = min(sx, sy)
    tx = (width - s * dx) / 2 - s * min_x
    ty = (height - s * dy) / 2 + s * max_y
    return Projection(scale=s, tx=tx, ty=ty)


def ring_area(ring: Ring) -> float:
    """Signed shoelace area; positive for counter-clockwise rings."""
    if len(ring) == 0:
        return 0.0
    pts = np.asarray(ring, dtype=float)[:, :2]
    prev = np.roll(pts, 1, axis=0)
    return float((prev[:, 0] * pts[:, 1] - pts[:, 0] * prev[:, 1]).sum() * 0.5)


def polygon_centroid(ring: Ring) -> Point:
    """
    Area-weighted centroid of a ring (shoelace formula).

    Works for either winding order. A ring with exactly zero signed area
    (collinear points, a single point) returns its first vertex instead.
    """
    if len(ring) == 0:
        raise ValueError("Cannot compute the centroid of an empty ring")

    pts = np.asarray(ring, dtype=float)[:, :2]
    prev = np.roll(pts, 1, axis=0)
    cross = prev[:, 0] * pts[:, 1] - pts[:, 0] * prev[:, 1]
    area = cross.sum() * 0.5
    if area == 0:
        return (float(pts[0, 0]), float(pts[0, 1]))

    cx = ((prev[:, 0] + pts[:, 0]) * cross).sum()
    cy = ((prev[:, 1] + pts[:, 1]) * cross).sum()
    return (float(cx / (6 * area)), float(cy / (6 * area)))


def vertex_key(x: float, y: float, precision: int = config.VERTEX_KEY_PRECISION) -> str:
    """Canonical key for a boundary vertex, e.g. '-111.050000,41.000000'."""
    # -0.0 and tiny negative noise must key the same as 0.0
    x = round(x, precision) + 0.0
    y = round(y, precision) + 0.0
    return f"{x:.{precision}f},{y:.{precision}f}"


def vertex_keys(polygons: Iterable[Polygon], precision: int = config.VERTEX_KEY_PRECISION) -> frozenset:
    """Set of canonical keys for every vertex of every ring."""
    keys = set()
    for polygon in polygons:
        for ring in polygon:
            for pt in ring:
                keys.add(vertex_key(pt[0], pt[1], precision))
    return frozenset(keys)
