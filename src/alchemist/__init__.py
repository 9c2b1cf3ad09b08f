"""Language Alchemist: conlang construction and translation engine."""

__version__ = "0.1.0"
