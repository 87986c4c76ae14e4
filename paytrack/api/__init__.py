"""HTTP read API for indexed transfers."""
