"""
VocalTake UI Module

Qt glue for the timeline engine:
- EngineBridge: engine observers as Qt signals, QTimer-driven ticks
"""
from .engine_bridge import EngineBridge

__all__ = [
    'EngineBridge',
]
