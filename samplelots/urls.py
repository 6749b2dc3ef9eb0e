from django.urls import path
from . import views

app_name = 'samplelots'

urlpatterns = [
    path('', views.sample_lot_list, name='sample_lot_list'),                 # GET: List, POST: Create new
    path('search/', views.sample_lot_search, name='sample_lot_search'),        # GET: Same envelope, ?q= search
]
