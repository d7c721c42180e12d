"""Input connectors (console REPL)."""
