"""
URL configuration for the lims_tracking project.
"""
from django.urls import path, include

urlpatterns = [
    path('api/auth/', include('authentication.urls')),
    path('api/jobs/', include('samplejobs.urls')),
    path('api/sample-lots/', include('samplelots.urls')),
    path('api/specimens/', include('specimens.urls')),
    path('api/sample-preparations/', include('samplepreparations.urls')),
    path('api/certificates/', include('certificates.urls')),
    path('api/tracking/', include('tracking.urls')),
]

handler400 = 'lims_tracking.error_views.handler400'
handler403 = 'lims_tracking.error_views.handler403'
handler404 = 'lims_tracking.error_views.handler404'
handler500 = 'lims_tracking.error_views.handler500'
