"""Fellowship community backend."""
