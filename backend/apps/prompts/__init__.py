# apps/prompts/__init__.py
"""HTTP API for prompt templates"""
