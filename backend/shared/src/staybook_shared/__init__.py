"""Shared models and services for the Staybook refunds backend."""
