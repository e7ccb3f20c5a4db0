from rest_framework import serializers


# ---------------- OPEN SESSION ----------------
class OpenOperatorSessionSerializer(serializers.Serializer):
    token = serializers.CharField(trim_whitespace=True)
    user_id = serializers.IntegerField(min_value=1)
    shop_id = serializers.IntegerField(min_value=1)
    station_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    name = serializers.CharField(required=False, allow_blank=True, default="")


# ---------------- CURRENT OPERATOR ----------------
class OperatorSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    shop_id = serializers.IntegerField()
    station_id = serializers.IntegerField()
    name = serializers.CharField(allow_blank=True)
    has_cart = serializers.BooleanField()
    current_cart_id = serializers.IntegerField(allow_null=True)
