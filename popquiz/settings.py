"""
Optional JSON settings file on top of the defaults in popquiz.config.

Example settings.json:
    {
      "quiz": {
        "start_codes": ["WA", "OR"],
        "goal_codes": ["ME", "FL"],
        "canvas": {"width": 1200, "height": 800, "padding": 30},
        "vertex_precision": 6
      },
      "data": {
        "features": "data/states.json.gz",
        "attributes": "data/population.json"
      }
    }

 IMPORTANT: This is a library module, NOT an entry point.
   Do NOT call sys.exit() here - let the calling script decide.
"""

import json
from pathlib import Path
from typing import Dict, Any, Union

from popquiz import config
from popquiz.errors import SettingsError


def load_settings(settings_file: Union[str, Path] = "settings.json") -> Dict[str, Any]:
    settings_path = Path(settings_file)

    # No file means "use the defaults"
    if not settings_path.exists():
        return {}

    try:
        with open(settings_path, 'r', encoding='utf-8') as f:
            settings = json.load(f)
    except json.JSONDecodeError as e:
        raise SettingsError(f"Invalid JSON in {settings_file}: {e}") from e

    if not isinstance(settings, dict):
        raise SettingsError(f"{settings_file} must contain a JSON object")
    return settings


def get_setting(key_path: str, default: Any = None,
                settings_file: Union[str, Path] = "settings.json") -> Any:
    try:
        settings = load_settings(settings_file)
        keys = key_path.split('.')
        value = settings
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError):
        return default


def get_quiz_settings(settings_file: Union[str, Path] = "settings.json") -> Dict[str, Any]:
    """
    Quiz settings with every missing key filled from popquiz.config.

    Codes are uppercased and returned as frozensets.
    """
    quiz = load_settings(settings_file).get('quiz', {})
    canvas = quiz.get('canvas', {})
    return {
        'start_codes': frozenset(str(c).upper() for c in quiz.get('start_codes', config.DEFAULT_START_CODES)),
        'goal_codes': frozenset(str(c).upper() for c in quiz.get('goal_codes', config.DEFAULT_GOAL_CODES)),
        'canvas': {
            'width': canvas.get('width', config.CANVAS_WIDTH),
            'height': canvas.get('height', config.CANVAS_HEIGHT),
            'padding': canvas.get('padding', config.CANVAS_PADDING),
        },
        'vertex_precision': quiz.get('vertex_precision', config.VERTEX_KEY_PRECISION),
    }


def get_data_settings(settings_file: Union[str, Path] = "settings.json") -> Dict[str, Any]:
    data = load_settings(settings_file).get('data', {})
    return {
        'features': data.get('features', config.DEFAULT_FEATURES_URL),
        'attributes': data.get('attributes', config.DEFAULT_ATTRIBUTES_PATH),
    }
