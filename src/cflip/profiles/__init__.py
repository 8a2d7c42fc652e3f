"""saved Claude Code account profiles and the switching engine."""
from .models import Profile, ProfileIndex
from .store import ProfileRepository
from .switcher import Switcher

__all__ = [
    "Profile",
    "ProfileIndex",
    "ProfileRepository",
    "Switcher",
]
