"""Terminal picker for the live channels a Twitch user follows."""

__version__ = "0.1.0"

__all__ = ["__version__"]
