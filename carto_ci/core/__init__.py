"""Orchestration core: event interpretation, job lifecycle, status and release publication."""
