"""Centralized brand configuration for user-facing copy."""

BRAND_NAME = "Matildus"
BRAND_APP_DESCRIPTION = "Two-sided seasonal labor marketplace: swipe, match, offer and borrow staff"
