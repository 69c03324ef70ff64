"""Adapters binding the sweep ports to Sectigo and SQLAlchemy."""
