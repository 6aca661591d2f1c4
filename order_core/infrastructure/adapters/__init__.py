"""Infrastructure adapters for the application interfaces."""
