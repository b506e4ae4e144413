"""Profile dialog bot: per-conversation state isolation sample."""
