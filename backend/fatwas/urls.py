"""
Fatwas app URL configuration, included under ``/api/fatwas/``.

Endpoint Map
------------
    GET    /                          → list (role-scoped)
    POST   /                          → create
    GET    /public/                   → published fatwas (no auth)
    GET    /mine/                     → my requests
    GET    /assigned/                 → my assignments (shaykh)
    GET    /{id}/                     → retrieve
    DELETE /{id}/                     → destroy (admin)
    POST   /{id}/assign/              → assign (admin)
    POST   /{id}/unassign/            → unassign (admin)
    POST   /{id}/answer/              → answer
    POST   /{id}/approve/             → approve (admin)
    POST   /{id}/unapprove/           → unapprove (admin)
    POST   /{id}/reject/              → reject (admin)
    POST   /{id}/feedback/            → add feedback
    PATCH  /{id}/admin-notes/         → admin notes (admin)
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import FatwaViewSet

app_name = "fatwas"

router = SimpleRouter()
router.register(r"", FatwaViewSet, basename="fatwa")

urlpatterns = [
    path("", include(router.urls)),
]
