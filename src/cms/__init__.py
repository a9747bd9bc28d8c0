"""Content site backend: admin content CRUD with remote media binding."""
