"""Command-line client for a SOR server."""
