"""Schemas — pydantic models for persisted records, command inputs and events."""
