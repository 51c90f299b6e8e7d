"""TrackImport: metadata import and reconciliation for audio files."""

__version__ = "1.0.0"
