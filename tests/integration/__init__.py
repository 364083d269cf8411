"""
Integration tests for the Task Manager API.

Requests go through the Flask test client against an in-memory
database and cover accounts, sessions, tasks, avatars and error
responses.
"""
