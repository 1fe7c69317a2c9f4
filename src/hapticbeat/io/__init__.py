"""Result serialization."""
