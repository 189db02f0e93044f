"""Command-line interface for NebulaDocs."""
