"""Adapters: everything that performs HTTP I/O."""
