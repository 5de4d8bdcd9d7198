"""
Pytest fixtures for buildqueue tests.

Fixtures are organized by test category:
- watcher.py: workspace and build runner doubles for scheduler/supervisor tests
"""
