"""Tests for mgdiff.materials."""
