"""API routers for the assessment engine."""
