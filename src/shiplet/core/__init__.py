"""
Core components.

This package contains:
- API key authentication
- The MongoDB record store and its connection service
- SVG placeholder rendering
- Custom exceptions
"""
