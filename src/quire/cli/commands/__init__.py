"""Top-level quire commands (one module per command)."""
