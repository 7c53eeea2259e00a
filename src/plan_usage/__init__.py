"""Poll claude.ai plan usage and write it to a local JSON snapshot."""

__version__ = "0.2.0"
