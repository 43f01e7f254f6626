"""
URL configuration for auth API endpoints.
"""

from django.urls import path

from api.v1.auth import views

urlpatterns = [
    path("auth/login", views.LoginView.as_view(), name="login"),
    path("auth/logout", views.LogoutView.as_view(), name="logout"),
    path("users/<str:access_key>", views.UserView.as_view(), name="fetch-user"),
    path("app", views.AppConfigView.as_view(), name="app-config"),
]
