"""Command-line interface for the Unity Editor relay."""
