"""Story reading coach for early readers."""
