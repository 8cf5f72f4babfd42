"""Tests for mgdiff.validation."""
