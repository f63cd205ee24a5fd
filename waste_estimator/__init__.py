"""Panchayat Waste Estimator - photo-based municipal waste estimation service."""

__version__ = "1.0.0"
