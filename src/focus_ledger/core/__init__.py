"""Core session lifecycle and reporting logic."""
