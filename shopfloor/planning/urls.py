from django.urls import path

from shopfloor.planning import views

app_name = 'planning'

urlpatterns = [
    path('api/plans/', views.plans, name='plans'),
    path('api/plans/notifications/', views.notifications, name='notifications'),
    path('api/plans/notifications/update/', views.notification_update, name='notification-update'),
    path('api/plans/<str:plan_id>/', views.plan_detail, name='plan-detail'),
    path('api/plans/<str:plan_id>/approve/', views.plan_approve, name='plan-approve'),
    path('api/plans/<str:plan_id>/cancel/', views.plan_cancel, name='plan-cancel'),
]
