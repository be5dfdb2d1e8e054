"""Shared FleetDeck utilities: errors and logging."""
