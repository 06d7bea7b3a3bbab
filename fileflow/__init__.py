"""FileFlow: file and version data layer with pluggable storage backends."""

__version__ = "1.0.0"
