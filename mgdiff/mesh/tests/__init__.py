"""Tests for mgdiff.mesh."""
