from django.urls import path
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter(trailing_slash=False)
router.register("assets", views.AssetViewSet, basename="asset")
router.register("users", views.UserViewSet, basename="user")

urlpatterns = router.urls + [
    path("reports/visit", views.visit_reports, name="visit-reports"),
    path("reports/visit/<str:pk>", views.visit_report_detail, name="visit-report-detail"),
    path("reports/payment", views.payment_reports, name="payment-reports"),
    path("reports/payment/<str:pk>", views.payment_report_detail, name="payment-report-detail"),
    path("collector/dashboard", views.collector_dashboard_view, name="collector-dashboard"),
    path("management/dashboard", views.management_dashboard_view, name="management-dashboard"),
]
