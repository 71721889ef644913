"""Domain services: identity, access decisions, toggles and their collaborators."""
