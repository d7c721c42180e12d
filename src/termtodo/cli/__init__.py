"""Command-line entry point, composition root, slash commands and rendering."""
