"""Command line interface for the assessment engine."""
