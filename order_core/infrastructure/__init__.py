"""Infrastructure layer - adapters, persistence, event bus and wiring."""
