"""monoctl — dependency-ordered script runner for monorepos."""

__version__ = "0.1.0"
