# Routes package init
"""
Blogging API — API Routes Package
===================================

Route Inventory:
    - posts.py:   /api/posts        (list, search, stats, by tags/author, CRUD)
    - health.py:  GET /health       (service and database health)

Routes stay thin: extract and validate request data, call the post
repository, wrap the result in the response envelope.
"""
