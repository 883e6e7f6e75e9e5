"""Infrastructure: Firebase REST adapters and Redis messaging."""
