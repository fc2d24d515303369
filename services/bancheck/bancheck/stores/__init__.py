"""Data stores for persistence.

Stores handle:
- PostgreSQL: engine, sessions, table creation
- Repository: the four queries the ban check needs

No ban policy in stores - that belongs in services.
"""
