"""App Hub — shared app catalog with personalized layouts."""

__version__ = "0.3.0"
