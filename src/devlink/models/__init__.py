# src/devlink/models/__init__.py
"""SQLAlchemy models for the DevLink application."""

from .account import Account, LinkedIdentity
from .content import BlogPost, Project
from .social import Endorsement, Follow, Like, ProfileView

__all__ = [
    "Account", "LinkedIdentity",
    "BlogPost", "Project",
    "Endorsement", "Follow", "Like", "ProfileView",
]
