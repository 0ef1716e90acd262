"""Settings persistence and input validation services."""
