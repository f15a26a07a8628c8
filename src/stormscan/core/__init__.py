"""Configuration, logging and run orchestration."""
