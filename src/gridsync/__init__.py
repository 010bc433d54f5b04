"""gridsync — realtime client for collaborative mots fléchés grids."""

__version__ = "0.1.0"
