"""
Draws the quiz map with matplotlib.

This is a thin adapter over the game: it reads projected geometry from the
registry, colors each region by classification (plus the current eligible
neighbors), and writes a PNG. MapRenderer listens to game events and only
redraws when something changed.
"""
from pathlib import Path
from typing import Dict, Optional, Union

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import PathPatch
from matplotlib.path import Path as MplPath

from popquiz.events import GameEvent
from popquiz.game import GameStateMachine
from popquiz.registry import RegionRegistry
from popquiz.types import RegionState

BACKGROUND = '#0f172a'
EDGE_COLOR = '#1e293b'
LABEL_COLOR = '#e2e8f0'
NEIGHBOR_COLOR = '#38bdf8'
STATE_COLORS: Dict[RegionState, str] = {
    RegionState.UNVISITED: '#475569',
    RegionState.CURRENT: '#facc15',
    RegionState.CORRECT: '#22c55e',
    RegionState.INCORRECT: '#ef4444',
}


def region_path(rings_by_polygon) -> Optional[MplPath]:
    """One compound path for all parts and holes of a region."""
    vertices = []
    codes = []
    for polygon in rings_by_polygon:
        for ring in polygon:
            if len(ring) < 3:
                continue
            vertices.append(ring)
            ring_codes = np.full(len(ring), MplPath.LINETO, dtype=MplPath.code_type)
            ring_codes[0] = MplPath.MOVETO
            ring_codes[-1] = MplPath.CLOSEPOLY
            codes.append(ring_codes)
    if not vertices:
        return None
    return MplPath(np.concatenate(vertices), np.concatenate(codes))


def render_map(registry: RegionRegistry, output_path: Union[str, Path],
               game: Optional[GameStateMachine] = None,
               show_labels: bool = True, dpi: int = 100) -> Path:
    """
    Render every region to a PNG.

    Args:
        registry: Regions with projected geometry
        output_path: PNG file to write
        game: If given, eligible neighbors are highlighted and the score shown
        show_labels: Draw region names at their centroids
        dpi: Output resolution; the canvas size is in screen units / dpi inches

    Returns:
        Path to the written file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    width, height = registry.canvas
    eligible = game.eligible_neighbors() if game is not None else frozenset()

    fig = plt.figure(figsize=(width / dpi, height / dpi), dpi=dpi, facecolor=BACKGROUND)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_facecolor(BACKGROUND)
    ax.set_xlim(0, width)
    # Screen coordinates grow downward
    ax.set_ylim(height, 0)
    ax.set_aspect('equal')
    ax.axis('off')

    try:
        for region in registry:
            path = region_path(registry.geometry(region.index))
            if path is None:
                continue
            color = STATE_COLORS[region.state]
            if region.index in eligible:
                color = NEIGHBOR_COLOR
            ax.add_patch(PathPatch(path, facecolor=color, edgecolor=EDGE_COLOR, linewidth=0.8))

        if show_labels:
            for region in registry:
                if not region.name:
                    continue
                x, y = registry.label_position(region.index)
                ax.text(x, y, region.name, color=LABEL_COLOR, fontsize=6,
                        ha='center', va='center')

        if game is not None:
            state = game.state
            title = f"Score: {state.score}"
            if state.message:
                title += f"   {state.message}"
            ax.text(12, 16, title, color=LABEL_COLOR, fontsize=10, ha='left', va='top')

        fig.savefig(output_path, dpi=dpi, facecolor=BACKGROUND)
    finally:
        plt.close(fig)

    return output_path


class MapRenderer:
    """
    Re-renders the map to one PNG whenever the game reports a change.

    Events can arrive several per move; they only mark the image stale, and
    refresh() draws at most once.
    """

    def __init__(self, game: GameStateMachine, output_path: Union[str, Path],
                 show_labels: bool = True):
        self.game = game
        self.output_path = Path(output_path)
        self.show_labels = show_labels
        self.stale = True
        game.events.subscribe(self._on_event)

    def _on_event(self, event: GameEvent) -> None:
        self.stale = True

    def refresh(self) -> bool:
        """Draw if anything changed since the last draw; returns True if drawn."""
        if not self.stale:
            return False
        render_map(self.game.registry, self.output_path, game=self.game,
                   show_labels=self.show_labels)
        self.stale = False
        return True

    def close(self) -> None:
        self.game.events.unsubscribe(self._on_event)
