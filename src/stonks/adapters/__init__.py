"""Adapters binding the domain ports to storage, HTTP and the local filesystem."""
