"""Servicios del Core (orquestación sin detalles de presentación)."""
