"""Shared configuration, errors, and paths."""
