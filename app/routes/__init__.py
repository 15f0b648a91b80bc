"""
API Routes Package

Each module defines routes for one feature area:

- users.py: Signup, login, logout and profile routes (/api/users)
- posts.py: Post CRUD and like/unlike routes (/api/posts)

Routes are registered in main.py.
"""
