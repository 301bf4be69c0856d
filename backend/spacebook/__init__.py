"""Spacebook booking core: reservations, availability and payment reconciliation."""
