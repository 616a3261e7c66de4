"""Logging setup for applications embedding the SDK."""
