"""
Natural Earth state/province borders as quiz features.

Alternative to a ready-made GeoJSON file: download admin_1 boundaries with
geopandas, cache them locally, and convert one country's subdivisions into
GeoJSON-like features that popquiz.registry understands.
"""
import math
import pickle
from pathlib import Path
from typing import Any, Dict, List, Optional

import geopandas as gpd
from shapely.geometry import mapping


class BorderManager:
    """
    Manages state/province border data from Natural Earth with caching.
    """

    def __init__(self, cache_dir: str = "data/.cache/borders"):
        """
        Args:
            cache_dir: Directory to cache downloaded border data
        """
        self.cache_dir = Path(cache_dir)
        self._state_data = None
        self._state_resolution = None

    def load_state_borders(self, resolution: str = '110m', force_reload: bool = False,
                           verbose: bool = False) -> gpd.GeoDataFrame:
        """
        Load Natural Earth admin_1 (states/provinces) data.

        Args:
            resolution: Natural Earth resolution ('10m', '50m', or '110m')
                       110m only covers a handful of countries (USA included)
            force_reload: Force re-download even if cached
            verbose: Print progress

        Returns:
            GeoDataFrame with state/province borders
        """
        if (not force_reload and self._state_data is not None
                and self._state_resolution == resolution):
            return self._state_data

        cache_file = self.cache_dir / f"ne_{resolution}_admin_1.pkl"

        if not force_reload and cache_file.exists():
            if verbose:
                print(f"   - Loading state borders from cache: {cache_file}")
            with open(cache_file, 'rb') as f:
                self._state_data = pickle.load(f)
            self._state_resolution = resolution
            return self._state_data

        if verbose:
            print(f"   - Downloading Natural Earth {resolution} admin_1 (states/provinces)...")
        ne_url = f"https://naciscdn.org/naturalearth/{resolution}/cultural/ne_{resolution}_admin_1_states_provinces.zip"
        self._state_data = gpd.read_file(ne_url)
        self._state_resolution = resolution

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        with open(cache_file, 'wb') as f:
            pickle.dump(self._state_data, f)
        if verbose:
            print(f"   - Cached state borders to: {cache_file}")

        return self._state_data

    def country_features(self, country_name: str = 'United States of America',
                         resolution: str = '110m', verbose: bool = False) -> List[dict]:
        """
        Subdivisions of one country as GeoJSON-like features.

        Natural Earth admin_1 rows carry 'name' and 'postal', which is what
        the quiz uses for labels and attribute codes.
        """
        states = self.load_state_borders(resolution, verbose=verbose)
        country = states[states['admin'].str.lower() == country_name.lower()]
        if country.empty and verbose:
            print(f"\n[!] Country '{country_name}' not found in state database.")
        return features_from_geodataframe(country)


def _clean_value(value: Any) -> Any:
    # pandas uses NaN for missing attribute cells
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def features_from_geodataframe(gdf: gpd.GeoDataFrame) -> List[dict]:
    """
    Convert GeoDataFrame rows to GeoJSON-like feature dicts.

    Empty or missing geometries become None so the registry skips them.
    """
    geom_col = gdf.geometry.name
    features: List[dict] = []
    for _, row in gdf.iterrows():
        geom = row[geom_col]
        geometry: Optional[Dict[str, Any]] = None
        if geom is not None and not geom.is_empty:
            geometry = mapping(geom)
        properties = {
            key: _clean_value(value)
            for key, value in row.items()
            if key != geom_col
        }
        features.append({'type': 'Feature', 'geometry': geometry, 'properties': properties})
    return features


def get_border_manager() -> BorderManager:
    """
    Get a singleton BorderManager instance.
    """
    if not hasattr(get_border_manager, '_instance'):
        get_border_manager._instance = BorderManager()
    return get_border_manager._instance
