"""Runner for a course of small Rust exercises: build, test, lint and track progress."""

__version__ = "5.5.1"
__all__ = ["__version__"]