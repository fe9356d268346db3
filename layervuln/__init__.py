"""Layer-attributed container image vulnerability scanning."""

__version__ = "0.1.0"
