"""Domain models and enumerations.

Pure, strict data structures (Pydantic v2): tokens, errors and the resource
shapes returned by the API.
"""
