"""FleetDeck CLI commands."""
