"""Shelfwise - Services Package

This package contains service modules for external integrations:
- HTTP client with bounded timeouts and retry
- Google Books ISBN metadata service
"""
