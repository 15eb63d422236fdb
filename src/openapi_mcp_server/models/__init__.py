"""Pydantic models for the management tools."""
