"""Mode controller and frame loop."""
