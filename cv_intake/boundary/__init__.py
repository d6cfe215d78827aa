"""
Boundary adapters.

Object storage and downstream HTTP service clients.
"""
