"""Publish the most recently played SoundCloud track as Discord Rich Presence."""

__version__ = "0.1.0"
