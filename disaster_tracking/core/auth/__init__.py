"""Authentication helpers: roles, passwords and API key secrets."""
