"""HTTP API for ClauseSign."""
