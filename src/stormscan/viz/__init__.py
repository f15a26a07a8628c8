"""Quick-look plotting."""
