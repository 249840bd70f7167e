"""Output layer — Result rendering and exit-code mapping for the CLI."""
