# apps/domain/services/__init__.py
"""Domain services: template store, approval workflow, webhook translation"""
