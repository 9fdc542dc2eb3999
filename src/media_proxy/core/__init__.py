"""
Core Infrastructure for media-proxy.

This package provides foundational components:
    - config.py: Configuration loading, validation and credentials
    - logging/: Structured logging with numeric levels
    - metrics.py: Prometheus metrics collection
"""
