"""Models package - settings, schemas and domain exceptions."""
