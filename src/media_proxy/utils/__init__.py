"""
Utility Modules for media-proxy.

    - timeit.py: Performance measurement utilities
"""
