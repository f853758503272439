from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView, register, logout, user_me,
    password_reset_request, password_reset_confirm,
    user_list, user_detail, user_role_update, user_toggle_active,
    activity_log_list, activity_log_entities,
    notification_list, notification_mark_read, notification_mark_all_read, notification_delete,
    run_tasks, global_search
)

urlpatterns = [
    # Auth endpoints
    path('auth/register/', register, name='register'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/logout/', logout, name='logout'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/password-reset/', password_reset_request, name='password-reset'),
    path('auth/password-reset/confirm/', password_reset_confirm, name='password-reset-confirm'),

    # User endpoints
    path('users/', user_list, name='user-list'),
    path('users/<int:pk>/', user_detail, name='user-detail'),
    path('users/<int:pk>/role/', user_role_update, name='user-role-update'),
    path('users/<int:pk>/toggle-active/', user_toggle_active, name='user-toggle-active'),

    # Activity log endpoints
    path('activity-logs/', activity_log_list, name='activity-log-list'),
    path('activity-logs/entities/', activity_log_entities, name='activity-log-entities'),

    # Notification endpoints
    path('notifications/', notification_list, name='notification-list'),
    path('notifications/read-all/', notification_mark_all_read, name='notification-read-all'),
    path('notifications/<int:pk>/', notification_delete, name='notification-delete'),
    path('notifications/<int:pk>/read/', notification_mark_read, name='notification-read'),

    # Scheduled tasks
    path('tasks/run/', run_tasks, name='run-tasks'),

    # Global search endpoint
    path('search/', global_search, name='global-search'),
]
