"""Photo-driven story chaptering service."""
