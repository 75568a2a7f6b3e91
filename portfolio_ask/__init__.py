"""Retrieval-augmented "ask my portfolio" assistant."""

__version__ = "0.1.0"
