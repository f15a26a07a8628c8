"""Grid-based detection of storm centers and atmospheric rivers on the sphere."""

__version__ = "0.1.0"
