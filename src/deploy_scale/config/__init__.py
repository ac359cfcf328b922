"""
Configuration management for the scale command.

Contains Pydantic settings and the loader for the on-disk CLI configuration
(global config directory and local project file).
"""
