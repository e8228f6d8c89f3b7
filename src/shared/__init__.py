# src/shared/__init__.py
"""
Code shared across the service layers.

Modules:
- events: domain event schemas published on RabbitMQ
- models: shared response models
"""

__all__: list[str] = []
