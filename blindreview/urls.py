from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from .views import health_check

# Customize admin site
admin.site.site_header = settings.ADMIN_SITE_HEADER
admin.site.site_title = settings.ADMIN_SITE_TITLE
admin.site.index_title = settings.ADMIN_INDEX_TITLE

urlpatterns = [
    path('admin/', admin.site.urls),
    path('dashboard/', include('dashboard.urls', namespace='dashboard')),
    path('health/', health_check, name='health_check'),
]

# Custom error handlers
handler404 = 'blindreview.views.custom_404'
handler500 = 'blindreview.views.custom_500'
handler403 = 'blindreview.views.custom_403'
