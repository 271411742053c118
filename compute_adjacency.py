"""
Compute region adjacency from shared boundary vertices and export it.
Outputs to generated/region_adjacency.json (+ .json.gz)
"""
import argparse
import sys

from popquiz import config
from popquiz.adjacency import AdjacencyIndex, export_adjacency
from popquiz.errors import PopQuizError
from popquiz.loading import load_features
from popquiz.registry import RegionRegistry
from popquiz.settings import get_data_settings


def compute_adjacency(features_source: str, output_dir: str = 'generated',
                      precision: int = config.VERTEX_KEY_PRECISION) -> int:
    print("Computing region adjacency from boundary vertices...")

    features = load_features(features_source, verbose=True)
    registry = RegionRegistry.from_features(features, precision=precision, verbose=True)
    index = AdjacencyIndex(registry)

    for region in registry:
        neighbors = sorted(registry.region(j).code for j in index.neighbors_of(region.index))
        if neighbors:
            print(f"  {region.code or region.index}: {', '.join(neighbors)}")
        else:
            print(f"  {region.code or region.index}: (isolated)")

    output_file, output_file_gz = export_adjacency(index, output_dir)

    json_size = output_file.stat().st_size
    gz_size = output_file_gz.stat().st_size
    compression_ratio = (1 - gz_size / json_size) * 100

    print(f"\n[SUCCESS] Computed adjacency for {registry.region_count()} regions")
    print(f"[SUCCESS] Saved to {output_file}")
    print(f"[SUCCESS] File sizes: {json_size:,} bytes (uncompressed), {gz_size:,} bytes (gzipped, {compression_ratio:.1f}% compression)")
    print(f"[SUCCESS] Total connections: {index.connection_count()}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description='Compute region adjacency from shared boundary vertices',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default dataset (settings.json or the public US states GeoJSON)
  python compute_adjacency.py

  # Local file
  python compute_adjacency.py --features data/states.json.gz

  # Natural Earth admin_1 subdivisions of a country
  python compute_adjacency.py --features "naturalearth:United States of America"
        """
    )
    parser.add_argument('--features', type=str, default=None,
                        help='GeoJSON file, URL, or naturalearth:<country>')
    parser.add_argument('--output-dir', type=str, default='generated',
                        help='Output directory (default: generated)')
    parser.add_argument('--precision', type=int, default=config.VERTEX_KEY_PRECISION,
                        help=f'Vertex rounding digits (default: {config.VERTEX_KEY_PRECISION})')
    parser.add_argument('--settings', type=str, default='settings.json',
                        help='Settings file (default: settings.json)')
    args = parser.parse_args()

    try:
        features_source = args.features or get_data_settings(args.settings)['features']
        return compute_adjacency(features_source, args.output_dir, args.precision)
    except PopQuizError as e:
        print(f"[!] {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
