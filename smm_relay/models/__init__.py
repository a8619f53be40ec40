"""Pydantic models for the relay API."""
