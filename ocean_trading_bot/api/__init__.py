"""Relay collaborator interface."""

from .relay import RelayClient

__all__ = ['RelayClient']
