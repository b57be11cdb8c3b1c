"""Infrastructure Layer — database sessions, file storage and logging setup.

Invariants:
    - Infrastructure never imports domain rules from core/ (errors excepted)
    - Driver and filesystem failures are mapped to VentureNetError subclasses

Design Decisions:
    - Thin wrappers over SQLAlchemy and the filesystem, configured once at startup
"""
