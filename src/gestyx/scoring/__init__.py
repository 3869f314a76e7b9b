"""Mode scorers and score bands."""
