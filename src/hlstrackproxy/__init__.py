"""hlstrackproxy - local HLS manifest-rewriting proxy for rich audio track names."""

__version__ = "0.1.0"
