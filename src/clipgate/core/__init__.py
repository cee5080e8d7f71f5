"""Core configuration, error taxonomy and identity helpers."""
