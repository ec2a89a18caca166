"""SkyTrack: live ADS-B feed ingestion into a shared track table."""

__version__ = "0.1.0"
