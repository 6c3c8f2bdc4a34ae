"""Application services built on the document store."""
