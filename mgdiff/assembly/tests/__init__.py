"""Tests for mgdiff.assembly."""
