"""
PATH: pos/serializers/cart_line.py

CART LINE SERIALIZER

Purpose:
- Serialize CartLine snapshots for the POS UI.
- item_total comes from the snapshot (unit_price x quantity), never the remote.
"""

from rest_framework import serializers


class CartLineSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="line_item_id", read_only=True)
    product_id = serializers.IntegerField(read_only=True, allow_null=True)
    product_name = serializers.CharField(read_only=True)

    unit_price = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    quantity = serializers.IntegerField(read_only=True)
    discount = serializers.DecimalField(
        source="line_discount",
        max_digits=14,
        decimal_places=2,
        read_only=True,
    )
    item_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    shop_id = serializers.IntegerField(read_only=True, allow_null=True)
    added_at = serializers.CharField(read_only=True, allow_null=True)
