"""Pydantic models for FleetDeck deployments and previews."""
