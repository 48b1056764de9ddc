"""Key-value backends for the persistent task repository."""
