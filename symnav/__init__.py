"""symnav: semantic symbol index and refactoring engine for Python codebases."""

__version__ = "0.3.0"
