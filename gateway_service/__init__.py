"""GraphQL gateway composing local, remote function and legacy schemas."""

__version__ = "0.1.0"
