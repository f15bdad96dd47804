"""Mock sensor-side collaborators."""
