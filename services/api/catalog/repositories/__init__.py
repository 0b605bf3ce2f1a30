"""Generic entity operations (find/create/update/delete/bulk insert/count)
plus the per-entity specs and helpers built on them.

No business rules here - those belong in services.
"""
