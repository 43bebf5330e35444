"""Configuration for W' Balance Analyser."""
