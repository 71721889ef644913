"""Core configuration for DevLink."""
