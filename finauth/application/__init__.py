"""Application layer: commands, result DTOs and the auth service."""
