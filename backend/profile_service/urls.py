from django.conf import settings
from django.conf.urls.static import static
from django.urls import include, path

urlpatterns = [
    path("", include("health.urls")),
    # Profile and audit endpoints share the /api/users prefix
    path("api/users/", include("apps.users.urls")),
    path("api/users/", include("apps.audit.urls")),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
