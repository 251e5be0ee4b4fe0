"""KBW Notes - blog platform API with AI-moderated comments."""

__version__ = "0.1.0"
