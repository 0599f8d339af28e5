"""Conversion of graph payloads to NetworkX."""
