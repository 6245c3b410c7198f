"""Pydantic schemas for ProjectHub."""
