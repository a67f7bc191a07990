"""farmchat — farming marketplace chat gateway with Gemini tool calling."""

__version__ = "0.1.0"
