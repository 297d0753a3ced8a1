"""ResoNote: tag and audio-feature similarity engine with diversity-aware playlist assembly."""

__version__ = "1.0.0"
