"""Compiler building blocks: sources, tokens, diagnostics, instruction prototypes and selection trees."""

__version__ = "0.1.0"