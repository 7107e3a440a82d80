"""Core resolution engine: version model, candidate sets, and search."""
