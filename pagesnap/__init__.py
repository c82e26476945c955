"""PageSnap - render HTML or URLs in headless Chromium and return PNG captures."""

__version__ = "0.1.0"
