"""FastAPI serving layer for the composed schema."""
