"""
URL configuration for session API endpoints.
"""

from django.urls import path

from api.v1.sessions import views

urlpatterns = [
    path("bind", views.BindSessionView.as_view(), name="bind-session"),
    path("unbind", views.UnbindSessionView.as_view(), name="unbind-session"),
    path("validate", views.ValidateSessionView.as_view(), name="validate-session"),
]
