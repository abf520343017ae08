"""Command line tooling for applenotes."""
