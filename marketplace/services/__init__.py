"""
Service layer holding the marketplace business rules.
"""
