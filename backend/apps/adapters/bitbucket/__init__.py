# apps/adapters/bitbucket/__init__.py
"""Bitbucket Cloud adapters for the remote repository port"""
