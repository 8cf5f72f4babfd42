"""Meshes: data structure, structured builders, refinement."""
