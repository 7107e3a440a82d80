"""ResolveKit command-line interface."""
