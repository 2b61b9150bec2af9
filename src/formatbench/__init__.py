"""formatbench: compare read/write performance of tabular file formats."""

__version__ = "0.1.0"
