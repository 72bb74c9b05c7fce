"""Persistence layer: engine, models, repositories and schemas."""
