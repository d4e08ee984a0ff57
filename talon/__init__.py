"""Talon — local registry for self-contained capability packages.

A talon is a directory holding a ``TALON.md`` manifest (YAML metadata
block followed by free-form documentation) plus any supporting files.
This package parses manifests, keeps a persisted index of installed
talons, and answers discovery and search queries over it.
"""

__version__ = "0.1.0"
