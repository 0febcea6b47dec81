"""TheTVDB metadata provider for Plex custom metadata agents."""

__version__ = "1.0.0"
