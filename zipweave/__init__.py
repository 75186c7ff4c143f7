"""Write ZIP archives with whole or streamed entries, ZIP64 support and several compression methods."""

__version__ = "0.1.0"