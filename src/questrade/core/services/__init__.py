"""Services composed on top of the client (token coordination)."""
