"""Tests for mgdiff.fields."""
