"""Built-in plugins shipped with relaykit."""
