"""External collaborators (blob storage)."""
