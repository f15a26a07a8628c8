"""Small numerical and hashing helpers."""
