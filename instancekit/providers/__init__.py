"""Cloud providers for instancekit."""
