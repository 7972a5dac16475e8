"""
Repository / unit-of-work package.

Import implementations from their modules (repositories.memory, repositories.sql).
Keep this file free of imports: models -> stock -> repositories.base must not load the SQL layer.
"""
