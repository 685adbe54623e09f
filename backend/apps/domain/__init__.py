# apps/domain/__init__.py
"""
Domain Layer - Pure Python Business Logic

This package contains the prompt template store: records kept as files in
a hosted git repository, with approval-gated deletes.
It has ZERO dependencies on Django or HTTP libraries.

Key principles:
- Pure Python (no framework imports)
- Fully unit testable against the in-memory repository
- Independent of delivery mechanism (HTTP, webhook, CLI)
"""

__version__ = "1.0.0"
