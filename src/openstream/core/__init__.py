"""Core library engine.

This package contains the import and synchronization logic:
- hashing / metadata / naming / artwork: per-file building blocks
- importer: copy-in and adopt-in-place pipeline
- albums: album grouping and reconciliation
- sync: synchronization passes and status reporting
- library: the service that owns the catalog and wires everything together
"""

__all__: list[str] = []
