"""Tests for mgdiff.solvers."""
