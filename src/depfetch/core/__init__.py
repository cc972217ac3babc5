"""Core resolution, fetch and report machinery."""
