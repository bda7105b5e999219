"""Command-line interface for envsimple."""
