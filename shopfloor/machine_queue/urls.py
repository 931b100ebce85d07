from django.urls import path

from shopfloor.machine_queue import views

app_name = 'machine_queue'

urlpatterns = [
    path('api/machines/', views.machines, name='machines'),
    path('api/machines/available/', views.available_machines, name='available-machines'),
    path('api/machines/<str:machine_id>/', views.machine_detail, name='machine-detail'),
    path('api/machines/<str:machine_id>/queue/', views.machine_entries, name='machine-queue'),
    path('api/machines/<str:machine_id>/compact/', views.machine_compact, name='machine-compact'),
    path('api/queues/', views.entries, name='entries'),
    path('api/queues/batch-steps/', views.batch_steps, name='batch-steps'),
    path('api/queues/complete-step/', views.complete_step, name='complete-step'),
    path('api/queues/cancel-batch/', views.cancel_batch, name='cancel-batch'),
    path('api/queues/by-batch/<str:batch_id>/', views.batch_entries, name='batch-entries'),
    path('api/queues/<str:queue_id>/', views.entry_detail, name='entry-detail'),
    path('api/queues/<str:queue_id>/start/', views.entry_start, name='entry-start'),
    path('api/queues/<str:queue_id>/pause/', views.entry_pause, name='entry-pause'),
    path('api/queues/<str:queue_id>/resume/', views.entry_resume, name='entry-resume'),
    path('api/queues/<str:queue_id>/complete/', views.entry_complete, name='entry-complete'),
    path('api/queues/<str:queue_id>/cancel/', views.entry_cancel, name='entry-cancel'),
    path('api/queues/<str:queue_id>/move/', views.entry_move, name='entry-move'),
]
