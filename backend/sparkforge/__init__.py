"""Sparkforge backend: sparks, stories, and versioned publishable artifacts."""
