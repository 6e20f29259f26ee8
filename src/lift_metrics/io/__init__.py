"""Storage and (de)serialization."""
