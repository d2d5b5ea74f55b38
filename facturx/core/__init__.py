"""Konfiguration und Logging."""
