"""Famops - HTTP surface."""
