"""tracectl — interactive traceability graph explorer."""

__version__ = "0.1.0"
