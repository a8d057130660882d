"""
Application layer for the Program Content API.

This package contains:
- exceptions.py: The content error taxonomy shared by services and adapters
- ports/: The document store interface the services depend on
"""
