"""Compile, run, watch and track compiler-checked programming exercises."""

__version__ = "5.5.1"
__all__ = ["__version__"]