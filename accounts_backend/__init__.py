"""
Backend package for the accounts and profiles API.

This package provides a FastAPI application with database and file
storage abstractions for user registration, login and profile records.
"""
