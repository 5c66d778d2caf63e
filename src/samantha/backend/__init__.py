"""Back-end providers and their manager."""
