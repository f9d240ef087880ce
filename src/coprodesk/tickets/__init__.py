"""Tickets: visibility rules, routing chain, filters and lifecycle operations."""
