"""Flux fields, fission source and region integration."""
