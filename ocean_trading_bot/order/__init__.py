"""Order lifecycle: reserve, sign and place."""

from .lifecycle import OrderLifecycle, OrderState, LifecycleResult, TERMINAL_STATES

__all__ = ['OrderLifecycle', 'OrderState', 'LifecycleResult', 'TERMINAL_STATES']
