"""Cached system configuration service for the complaint management platform."""
