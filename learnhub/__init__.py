"""LearnHub API."""
