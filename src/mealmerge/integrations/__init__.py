"""Clients for services the gateway depends on."""
