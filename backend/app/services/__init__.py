# Services package init
"""
Blogging API — Services Layer
===============================

Service Inventory:
    - post_rules:       Post validation, derived fields, pre-persist transformation
    - post_repository:  Query layer over the posts tables (CRUD, search, pagination)

Both are free of HTTP concerns, so they are tested without a server.
"""
