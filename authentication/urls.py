from django.urls import path
from . import views

app_name = 'authentication'

urlpatterns = [
    path('login/', views.login, name='login'),                    # POST: User login
    path('refresh/', views.refresh_token, name='refresh_token'),  # POST: Refresh access token
    path('logout/', views.logout, name='logout'),                 # POST: Revoke refresh token
    path('me/', views.me, name='me'),                             # GET: Current user
]
