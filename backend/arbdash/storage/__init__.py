"""Record store: engine management, ORM models and repositories."""
