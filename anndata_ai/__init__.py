"""AnnDataAI agronomy advisory API backed by hosted Granite models."""

__version__ = "0.1.0"
