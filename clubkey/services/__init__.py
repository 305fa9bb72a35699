"""Outbound integrations besides Discord."""
