"""FastAPI application module for TagRec.

This module contains the FastAPI application, route handlers, and API
endpoints for querying recommendations, rating predictions and item
neighborhoods.
"""
