"""Subscriber-data connector."""

from callrouting.hss.client import HssConnection

__all__ = ["HssConnection"]
