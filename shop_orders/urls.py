"""
URL configuration for shop_orders project.
"""
from django.contrib import admin
from django.urls import path

from orders.api.views import graphql_view, health_view

urlpatterns = [
    path('admin/', admin.site.urls),
    path('graphql/', graphql_view, name='graphql'),
    path('healthz/', health_view, name='health'),
]
