"""Content entities: field schemas, kind registry and persistence."""
