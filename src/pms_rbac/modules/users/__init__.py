"""Users module - accounts and their role assignments."""
