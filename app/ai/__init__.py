"""AI summary generation."""
