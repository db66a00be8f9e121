"""
URL configuration for library_console project.
"""
from django.urls import include, path

urlpatterns = [
    path('', include('librarian.urls')),
    path('accounts/', include('users.urls')),
    path('reports/', include('reports.urls')),
]
