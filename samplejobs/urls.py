from django.urls import path
from . import views

app_name = 'samplejobs'

urlpatterns = [
    path('', views.job_list, name='job_list'),                          # GET: List jobs
    path('search/', views.job_list, name='job_search'),                 # GET: Same envelope, ?q= search

    # Detail endpoint
    path('<str:job_ref>/complete-info/', views.job_complete_info, name='job_complete_info'),  # GET: Job with lots and lifecycle
]
