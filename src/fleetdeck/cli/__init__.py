"""Command line interface for FleetDeck."""
