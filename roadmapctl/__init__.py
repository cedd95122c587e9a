"""Configuration loading, diagnostics reports, diff previews and lint checks for markdown roadmap trees."""

__version__ = "0.1.0"