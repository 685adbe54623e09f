# apps/domain/ports/__init__.py
"""
Ports - Interface Definitions (Dependency Inversion)

Ports define contracts between domain and infrastructure layers.
Domain depends on these interfaces, adapters implement them.

This enables:
- Domain testability (use the in-memory fake repository)
- Flexibility (swap git hosts without changing the store)
- Clear boundaries (explicit dependencies)
"""
