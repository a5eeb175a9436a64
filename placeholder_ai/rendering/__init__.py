"""Rendering package.

This package contains deterministic SVG-construction helpers used by the
placeholder endpoints. It does not perform validation, caching, generation or
any I/O.
"""
