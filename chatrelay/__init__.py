"""chatrelay — one chat client, many LLM providers."""

__version__ = "0.3.0"
