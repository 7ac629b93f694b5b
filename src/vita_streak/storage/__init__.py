"""
Durable storage.

Components:
- kv_store.py: SQLite key -> string store
- item_store.py: tracked item codec + load/save/seed
"""
