"""HTTP surface of the assessment engine."""
