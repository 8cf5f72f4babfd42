"""Tests for mgdiff.elements."""
