"""Microservices package."""
