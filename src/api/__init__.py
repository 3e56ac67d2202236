"""
API module for FastAPI routes.

This module organizes the swipe session endpoints and health checks.
Each route module defines a FastAPI APIRouter that is mounted on the
application built by api.app.create_app.
"""
