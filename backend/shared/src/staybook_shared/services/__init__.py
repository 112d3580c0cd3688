"""Backend services for Staybook refunds."""
