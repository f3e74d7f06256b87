from decimal import ROUND_HALF_UP

from rest_framework import serializers


def quantity_field(**kwargs) -> serializers.DecimalField:
    """Read-only decimal rendered at two places, rounding half up."""
    kwargs.setdefault("read_only", True)
    return serializers.DecimalField(max_digits=20, decimal_places=2, rounding=ROUND_HALF_UP, **kwargs)
