"""
tasklist: client-side task list persistence.

Subpackages:
- tasks: data model, validation, envelope codec, repositories
- storage: key-value backends used by the persistent repository
- core: ports (Protocols) shared by repositories and callers
- cli: composition root and command-line entrypoint
"""

__version__ = "1.0.0"
