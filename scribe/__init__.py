"""Scribe - local recording agent for Playwright codegen."""

__version__ = "0.1.0"
