"""Embedding lookup and similarity."""
