"""Environment configuration loading."""
