"""Core infrastructure: configuration, logging, channels, identity and the document store."""
