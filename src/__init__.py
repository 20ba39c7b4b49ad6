"""Energy contract pricing service."""
