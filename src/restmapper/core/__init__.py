"""Core types shared across restmapper."""
