"""Adaptadores de I/O: HTTP, autenticación y exportación."""
