# collection_mgmt/urls.py
from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include


def healthz(request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path('admin/', admin.site.urls),
    # JSON API consumed by the admin, management and mobile clients
    path('api/', include('debt_collection.api_urls')),
    path("healthz/", healthz),
]
