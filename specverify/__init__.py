"""specverify: measure how closely code matches its specification documents."""

__version__ = "0.1.0"

__all__ = ["__version__"]
