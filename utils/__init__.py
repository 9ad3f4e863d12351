"""Shared helpers for the configuration registry."""
