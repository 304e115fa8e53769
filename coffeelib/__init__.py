"""coffeelib - filesystem to catalog import pipeline for a media library."""

__version__ = "0.1.0"
