"""A small file-backed relational database with a simple SQL dialect and shell."""

__version__ = "0.1.0"