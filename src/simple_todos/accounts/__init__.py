"""User accounts (sign up, log in, display names)."""
