"""
Population path quiz: region adjacency from shared borders and turn-based play.
"""

__version__ = "0.1.0"
