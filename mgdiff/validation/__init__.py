"""Analytical eigenvalue benchmarks."""
