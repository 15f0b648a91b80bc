"""
Postboard Application Package

A small social-posting API: users sign up and log in with email and
password, then create, edit, delete, like and unlike text posts.

- config.py: Application configuration and environment settings
- database.py: Database connection and session management
- dependencies.py: Auth gate (bearer token -> current user)
- exceptions.py: Application error types and their HTTP status codes
- main.py: FastAPI application entry point
- models.py: SQLAlchemy ORM database models
- schemas.py: Request/response bodies

Subpackages:
- routes/: API route handlers (users, posts)
- services/: Business logic (tokens, credentials, posts, audit)
- utils/: Input validators
"""
