"""Client module - API client, local project and sync operations."""
