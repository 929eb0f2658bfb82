"""Room-based multiplayer Pac-Man server core."""
