"""Workflow graphs and nodes."""
