"""User profile management."""
