"""Command-line interface for fretsight."""
