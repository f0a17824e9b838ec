"""Capture foreign-language snippets and enrich them with AI analysis."""

__version__ = "0.1.0"
