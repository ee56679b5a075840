"""droidpack: containerized Android APK builds and store bundle packaging."""

__version__ = "0.1.0"
