"""Development tools: the raw-log replay CLI."""
