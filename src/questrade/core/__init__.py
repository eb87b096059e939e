"""Core: configuration, error taxonomy, envelope decoding and domain models.

The core knows the API's contracts; the HTTP mechanics live in `adapters`.
"""
