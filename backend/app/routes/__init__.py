"""
StackIt Backend — API Routes Package
=====================================

What:  HTTP route handlers that accept requests and return responses.
How:   One module per resource, all mounted under /api.

Route Inventory:
    - questions.py:      /api/questions            (CRUD, per-user list, vote, unvote)
    - answers.py:        /api/answers              (CRUD, per-user list, vote, accept, comments)
    - notifications.py:  /api/notifications        (list, read state, delete)
    - users.py:          /api/users                (register, profile, stats)
    - health.py:         GET /api/health           (service health check)

Design Principle:
    Routes are THIN: they extract request data, resolve the acting user, call
    a service, and return its response model. Business rules live in services
    so they can be tested without HTTP.
"""
