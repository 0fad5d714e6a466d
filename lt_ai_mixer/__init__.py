"""LT-AI-mixer: a LanguageTool proxy that answers `//ai` requests with an LLM."""

__version__ = "1.0.0"
