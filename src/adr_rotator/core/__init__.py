"""Core configuration, models and naming rules."""
