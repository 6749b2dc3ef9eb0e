from django.urls import path
from . import views

app_name = 'samplepreparations'

urlpatterns = [
    path('', views.sample_preparation_search, name='sample_preparation_list'),           # GET: List, same filters as search
    path('search/', views.sample_preparation_search, name='sample_preparation_search'),  # GET: Search preparation requests
]
