"""Request/response DTOs for the HTTP surface."""
