"""Receiver-side screens for accepting inbound transactions."""
