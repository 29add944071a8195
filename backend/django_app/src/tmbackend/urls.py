from django.urls import path
from tmbackend.api import views as api

handler404 = 'tmbackend.api.views.not_found'
handler500 = 'tmbackend.api.views.server_error'

urlpatterns = [
    # Health (accept with and without trailing slash)
    path('api/health', api.health),
    path('api/health/', api.health),

    # Auth endpoints
    path('api/auth/register', api.register),
    path('api/auth/register/', api.register),
    path('api/auth/login', api.login_view),
    path('api/auth/login/', api.login_view),
    path('api/auth/me', api.me),
    path('api/auth/me/', api.me),

    # Export and import come before the detail route
    path('api/tasks/export/excel', api.export_excel),
    path('api/tasks/export/excel/', api.export_excel),
    path('api/tasks/bulk-upload', api.bulk_upload),
    path('api/tasks/bulk-upload/', api.bulk_upload),

    # Tasks collection and detail
    path('api/tasks', api.tasks),
    path('api/tasks/', api.tasks),
    path('api/tasks/<int:task_id>', api.task_detail),
    path('api/tasks/<int:task_id>/', api.task_detail),
]
