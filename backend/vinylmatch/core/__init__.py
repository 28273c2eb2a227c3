"""Core services: configuration, logging, catalog and the matching engine."""
