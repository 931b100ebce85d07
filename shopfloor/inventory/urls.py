from django.urls import path

from shopfloor.inventory import views

app_name = 'inventory'

urlpatterns = [
    path('api/materials/', views.materials, name='materials'),
    path('api/materials/check-stock/', views.check_stock, name='check-stock'),
    path('api/materials/reports/low-stock/', views.low_stock_report, name='low-stock-report'),
    path('api/materials/reports/usage/', views.usage_report, name='usage-report'),
    path('api/materials/<str:material_id>/', views.material_detail, name='material-detail'),
    path('api/materials/<str:material_id>/stock/', views.material_stock, name='material-stock'),
    path('api/materials/<str:material_id>/stock/add/', views.stock_add, name='stock-add'),
    path('api/materials/<str:material_id>/stock/consume/', views.stock_consume, name='stock-consume'),
    path('api/materials/<str:material_id>/stock/adjust/', views.stock_adjust, name='stock-adjust'),
    path('api/materials/<str:material_id>/transactions/', views.material_transactions, name='material-transactions'),
    path('api/reservations/', views.reservations, name='reservations'),
    path('api/reservations/reserve/', views.reserve, name='reserve'),
    path('api/reservations/release/', views.release, name='release'),
    path('api/reservations/consume/', views.consume, name='consume'),
    path('api/reservations/<str:batch_id>/', views.reservation_detail, name='reservation-detail'),
    path('api/suppliers/', views.suppliers, name='suppliers'),
    path('api/suppliers/performance/', views.supplier_performance, name='supplier-performance'),
    path('api/suppliers/<str:supplier_id>/', views.supplier_detail, name='supplier-detail'),
    path('api/suppliers/<str:supplier_id>/materials/', views.supplier_materials, name='supplier-materials'),
]
