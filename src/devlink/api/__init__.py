"""HTTP layer for the DevLink API."""
