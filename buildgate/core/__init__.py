"""Core: deployment lifecycle, hierarchy navigation, repositories and service."""
