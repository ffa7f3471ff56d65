from django.urls import path
from . import views

app_name = 'teams'

urlpatterns = [
    # GET /api/teams/{id}/progress/ - Derived order and production progress
    path('<uuid:team_id>/progress/', views.team_progress, name='team-progress'),
]
