"""Configuration utilities for KataPass."""
