"""DevLink: developer portfolio and client matching API."""

__version__ = "0.1.0"
