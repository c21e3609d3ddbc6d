"""Agency portal API service."""
