"""
Reconciliations app URL configuration, included under
``/api/reconciliations/``.

Endpoint Map
------------
    GET    /                                   → list (role-scoped)
    POST   /                                   → create
    GET    /mine/                              → my cases
    GET    /assigned/                          → my assignments (shaykh)
    GET    /{id}/                              → retrieve
    POST   /{id}/assign/                       → assign, additive (admin)
    POST   /{id}/meetings/                     → schedule meeting
    PATCH  /{id}/meetings/{meeting_id}/        → update meeting
    PUT    /{id}/notes/                        → shaykh notes
    POST   /{id}/feedback/                     → add feedback
    PATCH  /{id}/admin-notes/                  → admin notes (admin)
    POST   /{id}/complete/                     → complete with outcome
    POST   /{id}/cancel/                       → cancel
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import ReconciliationViewSet

app_name = "reconciliations"

router = SimpleRouter()
router.register(r"", ReconciliationViewSet, basename="reconciliation")

urlpatterns = [
    path("", include(router.urls)),
]
