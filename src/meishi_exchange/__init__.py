"""Meishi Exchange: business card exchange via QR codes and deep links."""

__version__ = "1.0.0"
