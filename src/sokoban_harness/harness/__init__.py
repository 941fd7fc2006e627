"""Concurrent harness that runs an external Sokoban solver over a corpus of levels."""
