"""Pydantic models for briefs, video specs, and request/response payloads."""
