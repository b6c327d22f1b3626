"""
Pydantic models for API request/response schemas.

Responses are camelCase on the wire; internal records stay snake_case and are
converted here, so stores and services never see HTTP shapes.
"""
