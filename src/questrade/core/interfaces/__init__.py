"""Interfaces (Protocol) the core depends on."""
