"""Core: configuración, dominio, contratos y el pipeline de consultas."""
