"""Core relationship engine: emotions, mood, memory, stages, dates, dialogue and story events."""
