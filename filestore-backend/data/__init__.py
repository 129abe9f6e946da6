"""
Data Layer

- storage: local filesystem storage operations
"""
