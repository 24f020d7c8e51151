"""Cutroom: video-editing project management backend."""
