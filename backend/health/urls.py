from django.urls import path
from .views import LiveView, ReadyView

app_name = "health"

urlpatterns = [
    path("health", LiveView.as_view(), name="live"),
    path("health/ready", ReadyView.as_view(), name="ready"),
]
