"""Index storage, indexing and search."""
