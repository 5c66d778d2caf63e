"""Front-end providers and their manager."""
