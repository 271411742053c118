"""
Loading of the two datasets the quiz needs:
- a region feature collection (GeoJSON FeatureCollection or single Feature)
- an attribute table (region code -> population)

Both can come from a local file (.json or .json.gz) or an http(s) URL.
"""

import gzip
import json
import math
from numbers import Real
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

import requests

from popquiz import config
from popquiz.errors import DataLoadError, MissingAttributeError

Source = Union[str, Path]


def feature_label(props: Optional[Mapping[str, Any]]) -> str:
    """Human-readable name: name -> state -> postal -> abbr -> ''."""
    props = props or {}
    for key in ('name', 'state', 'postal', 'abbr'):
        if props.get(key):
            return str(props[key])
    return ''


def region_code(props: Optional[Mapping[str, Any]]) -> str:
    """Uppercase join key: postal -> abbr -> state -> name -> ''."""
    props = props or {}
    for key in ('postal', 'abbr', 'state', 'name'):
        if props.get(key):
            return str(props[key]).upper()
    return ''


def _is_url(source: Source) -> bool:
    return isinstance(source, str) and source.startswith(('http://', 'https://'))


def _read_json(source: Source, verbose: bool = False) -> Any:
    if _is_url(source):
        if verbose:
            print(f"   - Downloading {source}...")
        try:
            resp = requests.get(source, timeout=config.DOWNLOAD_TIMEOUT)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            raise DataLoadError(f"Failed to download {source}: {e}") from e
        except ValueError as e:
            raise DataLoadError(f"Invalid JSON from {source}: {e}") from e

    path = Path(source)
    if not path.exists():
        raise DataLoadError(f"File not found: {path}")
    if verbose:
        print(f"   - Loading {path}")
    try:
        if path.suffix == '.gz':
            with gzip.open(path, 'rt', encoding='utf-8') as f:
                return json.load(f)
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DataLoadError(f"Failed to read {path}: {e}") from e


def load_feature_collection(source: Source, verbose: bool = False) -> List[dict]:
    """
    Load the region features.

    Args:
        source: File path or http(s) URL of a GeoJSON document
        verbose: Print progress

    Returns:
        List of GeoJSON feature dicts, in document order
    """
    gj = _read_json(source, verbose=verbose)
    if not isinstance(gj, dict):
        raise DataLoadError(f"{source}: expected a GeoJSON object")

    if gj.get('type') == 'FeatureCollection':
        features = gj.get('features')
        if not isinstance(features, list):
            raise DataLoadError(f"{source}: FeatureCollection has no 'features' list")
    elif gj.get('type') == 'Feature':
        features = [gj]
    else:
        raise DataLoadError(f"{source}: unsupported GeoJSON type {gj.get('type')!r}")

    if verbose:
        print(f"   - {len(features)} features")
    return features


class AttributeTable(Mapping[str, float]):
    """
    Read-only mapping of region code -> numeric attribute (population).

    Codes are stored uppercase. Lookups of unknown codes through get()
    return None; use require() before play to surface gaps up front.
    """

    def __init__(self, values: Mapping[str, Any]):
        table: Dict[str, float] = {}
        for code, value in values.items():
            # bool is a Real subclass; a population is never true/false
            if isinstance(value, bool) or not isinstance(value, Real):
                raise DataLoadError(f"Attribute value for {code!r} is not a number: {value!r}")
            if not math.isfinite(value):
                raise DataLoadError(f"Attribute value for {code!r} is not finite: {value!r}")
            table[str(code).upper()] = value
        self._values = table

    def __getitem__(self, code: str) -> float:
        return self._values[code.upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.upper() in self._values

    def missing(self, codes: Iterable[str]) -> List[str]:
        return sorted({c for c in codes if c not in self})

    def require(self, codes: Iterable[str]) -> None:
        """Raise MissingAttributeError naming every code without a value."""
        missing = self.missing(codes)
        if missing:
            raise MissingAttributeError(missing)


def load_attribute_table(source: Source, verbose: bool = False) -> AttributeTable:
    """
    Load a JSON object of region code -> number, e.g. {"AL": 5024279, ...}.
    """
    data = _read_json(source, verbose=verbose)
    if not isinstance(data, dict):
        raise DataLoadError(f"{source}: expected a JSON object of code -> value")
    table = AttributeTable(data)
    if verbose:
        print(f"   - {len(table)} attribute values")
    return table


NATURAL_EARTH_PREFIX = 'naturalearth:'


def load_features(source: Source, verbose: bool = False) -> List[dict]:
    """
    Features from a GeoJSON file/URL, or from Natural Earth admin_1 data when
    source is 'naturalearth:<country name>'.
    """
    if isinstance(source, str) and source.startswith(NATURAL_EARTH_PREFIX):
        # geopandas is slow to import; only pay for it when asked
        from popquiz.borders import get_border_manager
        country = source[len(NATURAL_EARTH_PREFIX):] or 'United States of America'
        return get_border_manager().country_features(country, verbose=verbose)
    return load_feature_collection(source, verbose=verbose)
