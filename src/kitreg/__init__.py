"""kitreg - validation and indexing for the starter kit registry."""

__version__ = "0.1.0"
