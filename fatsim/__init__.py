"""A FAT-style file system stored in a simulated block disk image, with a shell."""

__version__ = "0.1.0"
__all__ = ["cli", "disk", "fat"]