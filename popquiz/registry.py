"""
Per-region data for a loaded map.

Each playable region carries its immutable geometry (geographic and
projected), label, attribute code, centroid and canonical vertex keys, plus
one mutable play classification. Features without usable polygon geometry
are skipped at load time and never take part in play.

Classification only moves forward:
    UNVISITED -> CURRENT | CORRECT | INCORRECT
    CURRENT   -> CORRECT
CORRECT and INCORRECT are final until the whole registry is reset.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from popquiz import config
from popquiz.errors import DataLoadError, IllegalTransitionError
from popquiz.geometry import (
    Point,
    Polygon,
    Projection,
    compute_bounds,
    create_projector,
    polygon_centroid,
    polygons_of,
    ring_area,
    vertex_keys,
)
from popquiz.loading import feature_label, region_code
from popquiz.types import RegionState

LEGAL_TRANSITIONS = frozenset({
    (RegionState.UNVISITED, RegionState.CORRECT),
    (RegionState.UNVISITED, RegionState.INCORRECT),
    (RegionState.UNVISITED, RegionState.CURRENT),
    (RegionState.CURRENT, RegionState.CORRECT),
})


@dataclass
class Region:
    """A playable map subdivision."""
    index: int  # position in the registry
    feature_index: int  # position in the source feature collection
    name: str
    code: str
    polygons: Tuple[Polygon, ...]
    centroid: Point  # geographic, label anchor
    part_centroids: Tuple[Point, ...]  # one per polygon part
    vertex_keys: frozenset = field(repr=False)
    state: RegionState = RegionState.UNVISITED


def _usable_polygons(geometry: Optional[dict]) -> Optional[List[Polygon]]:
    polygons = polygons_of(geometry)
    if polygons is None:
        return None
    # A part without a non-empty exterior ring has nothing to draw or share
    polygons = [p for p in polygons if len(p) > 0 and len(p[0]) > 0]
    return polygons or None


class RegionRegistry:
    """
    Holds every playable region and its projected drawing geometry.
    """

    def __init__(self, regions: Sequence[Region], projection: Projection,
                 canvas: Tuple[float, float] = (config.CANVAS_WIDTH, config.CANVAS_HEIGHT)):
        self._regions: List[Region] = list(regions)
        self.projection = projection
        self.canvas = canvas
        self._projected = [
            [[projection.project_ring(ring) for ring in polygon] for polygon in region.polygons]
            for region in self._regions
        ]
        self._by_code: Dict[str, int] = {}
        for region in self._regions:
            # First feature wins when two share a code
            self._by_code.setdefault(region.code, region.index)

    @classmethod
    def from_features(cls, features: Sequence[dict],
                      width: float = config.CANVAS_WIDTH,
                      height: float = config.CANVAS_HEIGHT,
                      pad: float = config.CANVAS_PADDING,
                      precision: int = config.VERTEX_KEY_PRECISION,
                      verbose: bool = False) -> 'RegionRegistry':
        """
        Build the registry from GeoJSON features.

        Args:
            features: Feature dicts with 'geometry' and 'properties'
            width, height, pad: Drawing surface for the projection
            precision: Fractional digits for canonical vertex keys
            verbose: Print skipped features and a summary

        Returns:
            RegionRegistry with regions numbered densely in input order
        """
        regions: List[Region] = []
        skipped = 0
        for fi, feature in enumerate(features):
            props = feature.get('properties') or {}
            polygons = _usable_polygons(feature.get('geometry'))
            if polygons is None:
                skipped += 1
                if verbose:
                    geom = feature.get('geometry')
                    geom_type = geom.get('type') if geom else None
                    print(f"[!] Skipping feature {fi} ({feature_label(props) or 'unnamed'}): "
                          f"unsupported geometry {geom_type}")
                continue

            part_centroids = tuple(polygon_centroid(p[0]) for p in polygons)
            # Label the largest part (e.g. mainland rather than an island)
            largest = int(np.argmax([abs(ring_area(p[0])) for p in polygons]))
            regions.append(Region(
                index=len(regions),
                feature_index=fi,
                name=feature_label(props),
                code=region_code(props),
                polygons=tuple(polygons),
                centroid=part_centroids[largest],
                part_centroids=part_centroids,
                vertex_keys=vertex_keys(polygons, precision),
            ))

        if not regions:
            raise DataLoadError("No feature has usable Polygon/MultiPolygon geometry")

        bounds = compute_bounds(r.polygons for r in regions)
        projection = create_projector(bounds, width, height, pad)
        if verbose:
            print(f"   - {len(regions)} regions loaded, {skipped} skipped")
        return cls(regions, projection, canvas=(width, height))

    def __len__(self) -> int:
        return len(self._regions)

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions)

    def region_count(self) -> int:
        return len(self._regions)

    def region(self, i: int) -> Region:
        return self._regions[i]

    def index_of(self, code: str) -> Optional[int]:
        return self._by_code.get(code.upper())

    def geometry(self, i: int) -> List[List[np.ndarray]]:
        """Projected rings of region i, grouped by polygon part."""
        return self._projected[i]

    def centroid(self, i: int) -> Point:
        return self._regions[i].centroid

    def label_position(self, i: int) -> Point:
        return self.projection(self._regions[i].centroid)

    def classification(self, i: int) -> RegionState:
        return self._regions[i].state

    def set_classification(self, i: int, state: RegionState) -> bool:
        """
        Move region i to a new classification.

        Returns:
            True if the state changed, False if it already had that state

        Raises:
            IllegalTransitionError: for any move out of CORRECT/INCORRECT,
                or any other transition not listed in LEGAL_TRANSITIONS
        """
        region = self._regions[i]
        if region.state == state:
            return False
        if (region.state, state) not in LEGAL_TRANSITIONS:
            raise IllegalTransitionError(i, region.state, state)
        region.state = state
        return True

    def reset(self) -> None:
        """Every region back to UNVISITED (new game)."""
        for region in self._regions:
            region.state = RegionState.UNVISITED
