"""Core configuration, security and dependency wiring."""
