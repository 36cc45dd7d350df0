"""Text embeddings used for creator/company similarity search."""
