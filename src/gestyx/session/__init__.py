"""Session recording and summaries."""
