"""
Marriages app URL configuration, included under ``/api/marriages/``.

Endpoint Map
------------
    GET    /                                   → list (role-scoped)
    POST   /reservation/                       → create reservation
    POST   /certificate/                       → create certificate request
    GET    /mine/                              → my requests
    GET    /assigned/                          → my assignments (shaykh)
    GET    /{id}/                              → retrieve
    POST   /{id}/assign/                       → assign (admin)
    POST   /{id}/meetings/                     → schedule meeting
    PATCH  /{id}/meetings/{meeting_id}/        → update meeting
    POST   /{id}/feedback/                     → add feedback
    PATCH  /{id}/admin-notes/                  → admin notes (admin)
    POST   /{id}/complete/                     → complete
    POST   /{id}/cancel/                       → cancel
    POST   /{id}/generate-certificate/         → generate certificate
    POST   /{id}/upload-certificate/           → upload certificate file
    GET    /{id}/certificate-url/              → certificate reference
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import MarriageViewSet

app_name = "marriages"

router = SimpleRouter()
router.register(r"", MarriageViewSet, basename="marriage")

urlpatterns = [
    path("", include(router.urls)),
]
