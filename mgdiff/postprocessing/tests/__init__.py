"""Tests for mgdiff.postprocessing."""
