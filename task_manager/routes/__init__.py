"""
Routes package for the Task Manager API.

This package contains the route blueprints:
- users: signup, login, sessions, profile and avatar endpoints
- tasks: per-user task CRUD
- health: liveness probe
"""
