from django.urls import path
from .auth_views import CookieTokenObtainPairView, CookieTokenRefreshView, LogoutView, MeView, RegisterView, csrf

urlpatterns = [
    path("api/csrf/", csrf, name="csrf"),
    path("api/register/", RegisterView.as_view(), name="register"),
    path("api/token/", CookieTokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", CookieTokenRefreshView.as_view(), name="token_refresh"),
    path("api/logout/", LogoutView.as_view(), name="logout"),
    path("api/me/", MeView.as_view(), name="me"),
]
