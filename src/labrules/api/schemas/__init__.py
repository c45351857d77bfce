"""Pydantic schemas for the labrules API."""
