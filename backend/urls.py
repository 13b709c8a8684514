"""
URL configuration for backend project.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # App API routes
    path('', include('bookstore.urls')),

    # JWT auth endpoints (access in JSON, refresh via HttpOnly cookie)
    path('', include('bookstore.auth_urls')),
]
