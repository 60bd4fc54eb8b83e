"""Turn-based kart racing simulator."""

__version__ = "0.3.0"
