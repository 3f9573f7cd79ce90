"""Client module - Signed URL transfers, backend client and CLI."""
