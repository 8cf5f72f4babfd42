"""Sparse assembly, boundary conditions and the diffusion backend."""
