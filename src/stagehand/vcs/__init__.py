"""Thin wrappers around the git binary and the filesystem.

- Git command execution and output parsing (git_ops.py)
- File helpers used while saving and restoring snapshots (files.py)
"""
