from django.urls import path
from . import views

app_name = 'specimens'

urlpatterns = [
    path('', views.specimen_list, name='specimen_list'),                 # GET: List, POST: Create new
]
