"""Application layer: configuration, controller and FastAPI app."""
