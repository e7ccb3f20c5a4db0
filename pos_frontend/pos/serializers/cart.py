# pos/serializers/cart.py

"""
CART + TOTALS SERIALIZERS

Purpose:
- Return the cart snapshot in a frontend-friendly shape.
- Totals are derived server-side; money is rendered as 2dp strings.
"""

from rest_framework import serializers

from .cart_line import CartLineSerializer


class TotalsSerializer(serializers.Serializer):
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    discount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    tax = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    item_count = serializers.IntegerField(read_only=True)


class CartSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    status = serializers.CharField(source="status.value", read_only=True)
    user_id = serializers.IntegerField(read_only=True, allow_null=True)
    shop_id = serializers.IntegerField(read_only=True, allow_null=True)
    created_at = serializers.CharField(read_only=True, allow_null=True)
    items = CartLineSerializer(many=True, read_only=True)
    is_empty = serializers.BooleanField(read_only=True)
    item_count = serializers.IntegerField(read_only=True)


class DisplayDataSerializer(serializers.Serializer):
    has_cart = serializers.BooleanField(read_only=True)
    cart = CartSerializer(read_only=True, allow_null=True)
    totals = TotalsSerializer(read_only=True)
