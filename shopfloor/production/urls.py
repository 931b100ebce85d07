from django.urls import path

from shopfloor.production import views

app_name = 'production'

urlpatterns = [
    path('api/requests/', views.requests_, name='requests'),
    path('api/requests/<str:request_id>/', views.request_detail, name='request-detail'),
    path('api/requests/<str:request_id>/cancel/', views.request_cancel, name='request-cancel'),
    path('api/batches/', views.batches, name='batches'),
    path('api/batches/<str:batch_number>/', views.batch_detail, name='batch-detail'),
    path('api/batches/<str:batch_number>/transition/', views.batch_transition, name='batch-transition'),
    path('api/batches/<str:batch_number>/assign/', views.batch_assign, name='batch-assign'),
    path('api/batches/<str:batch_number>/cancel/', views.batch_cancel, name='batch-cancel'),
    path('api/batches/<str:batch_number>/steps/', views.batch_steps, name='batch-steps'),
    path('api/batches/<str:batch_number>/steps/<int:step_id>/start/', views.step_start, name='step-start'),
    path('api/batches/<str:batch_number>/steps/<int:step_id>/complete/', views.step_complete, name='step-complete'),
]
