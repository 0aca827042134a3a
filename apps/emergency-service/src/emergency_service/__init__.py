"""Roadside emergency intake: validate, store, geocode and notify."""
