"""
Central configuration for the population quiz.

This is the single source of truth for default values.
"""

# Drawing surface in screen units; regions are projected to fit inside it
CANVAS_WIDTH = 960
CANVAS_HEIGHT = 600
# Margin kept free on every side of the canvas
CANVAS_PADDING = 24

# Fractional digits kept when canonicalizing boundary vertices.
# 6 digits (~0.1 m in degrees) absorbs float noise between neighbors' shared
# vertices without merging distinct nearby vertices.
VERTEX_KEY_PRECISION = 6

POINTS_PER_CORRECT_ANSWER = 10

# Start on the west coast, win on the east coast
DEFAULT_START_CODES = frozenset({'WA', 'OR', 'CA', 'ID'})
DEFAULT_GOAL_CODES = frozenset({'ME', 'NH', 'RI', 'CT', 'DE', 'DC', 'SC', 'GA', 'FL'})

DEFAULT_FEATURES_URL = 'https://mapsmania.github.io/typographic/states.json'
DEFAULT_ATTRIBUTES_PATH = 'population.json'

# Seconds before a dataset download is abandoned
DOWNLOAD_TIMEOUT = 30
