"""
Pydantic schemas for request and response validation.
"""
