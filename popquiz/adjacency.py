"""
Region adjacency from shared boundary vertices.

Two regions are neighbors when their canonical vertex-key sets intersect,
i.e. they share at least one boundary vertex after rounding. Unlike a
shared-edge test this also counts corner-only touches (Four Corners).

Adjacency is computed once per map; region geometry never changes.
"""

import gzip
import json
from pathlib import Path
from typing import Dict, FrozenSet, List, Tuple, Union

from popquiz.registry import RegionRegistry


class AdjacencyIndex:
    """
    Symmetric, irreflexive neighbor lookup over a RegionRegistry.
    """

    def __init__(self, registry: RegionRegistry):
        self.registry = registry
        self._neighbors: Dict[int, FrozenSet[int]] = self._build(registry)

    @staticmethod
    def _build(registry: RegionRegistry) -> Dict[int, FrozenSet[int]]:
        # Pairwise pass: N is tens to low hundreds of regions, run once
        regions = list(registry)
        found: Dict[int, set] = {r.index: set() for r in regions}
        for a_pos, a in enumerate(regions):
            for b in regions[a_pos + 1:]:
                if not a.vertex_keys.isdisjoint(b.vertex_keys):
                    found[a.index].add(b.index)
                    found[b.index].add(a.index)
        return {i: frozenset(n) for i, n in found.items()}

    def neighbors_of(self, i: int) -> FrozenSet[int]:
        return self._neighbors.get(i, frozenset())

    def are_adjacent(self, i: int, j: int) -> bool:
        return i != j and j in self.neighbors_of(i)

    def connection_count(self) -> int:
        """Number of unordered neighbor pairs."""
        return sum(len(n) for n in self._neighbors.values()) // 2

    def to_dict(self) -> Dict[str, List[str]]:
        """
        Export as {code: [neighbor codes]} (JSON-compatible, sorted).

        Regions without a code, and every region after the first sharing a
        code, fall back to their registry index.
        """
        def key(i: int) -> str:
            code = self.registry.region(i).code
            if code and self.registry.index_of(code) == i:
                return code
            return str(i)

        return {
            key(i): sorted(key(j) for j in neighbors)
            for i, neighbors in sorted(self._neighbors.items())
        }


def export_adjacency(index: AdjacencyIndex, output_dir: Union[str, Path] = 'generated') -> Tuple[Path, Path]:
    """
    Write region_adjacency.json and a gzipped copy.

    Returns:
        (json_path, gz_path)
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    output_file = output_dir / 'region_adjacency.json'
    output_file_gz = output_dir / 'region_adjacency.json.gz'
    adjacency_data = index.to_dict()

    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(adjacency_data, f, indent=2)

    with gzip.open(output_file_gz, 'wt', encoding='utf-8') as f:
        json.dump(adjacency_data, f, indent=2)

    return output_file, output_file_gz
