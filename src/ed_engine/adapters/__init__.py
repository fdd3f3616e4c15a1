"""Front-end adapters for embedding an editing session."""
