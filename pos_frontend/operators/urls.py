# operators/urls.py

from django.urls import path

from .views import OperatorSessionView

app_name = "operators"

urlpatterns = [
    path("session/", OperatorSessionView.as_view(), name="session"),
]
