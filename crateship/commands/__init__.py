"""Command implementations behind the click entry point; each returns an exit code."""
