"""Ream Language Server package.

This package provides:
- A pygls-based Language Server for Ream (`ream-ls`).
- An indexer that lexes, parses and type checks a buffer, without evaluating
  it, to produce diagnostics, hover text and document symbols.
"""
