"""Fission/power density, flux normalization and result export."""
