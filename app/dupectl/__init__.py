"""dupectl - find duplicate files and decide which copy survives."""

__version__ = "0.1.0"
