from django.urls import path

from route_engine import views

urlpatterns = [
    path("api/v1/health", views.health_view, name="health"),
    path("api/v1/route-metrics", views.route_metrics_view, name="route-metrics"),
]
