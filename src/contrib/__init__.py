"""
Helpers built on top of the order builders.

- construct_repeat_order: Rebuild a submittable order from an order returned by the API
- code_for_builder: Render Python source that recreates a builder
"""

from .orders import code_for_builder, construct_repeat_order

__all__ = ["construct_repeat_order", "code_for_builder"]
