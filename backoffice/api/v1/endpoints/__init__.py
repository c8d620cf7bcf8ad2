"""Endpoint routers, one module per resource."""
