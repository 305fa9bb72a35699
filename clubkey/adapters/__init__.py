"""Platform adapters for the key bot."""
