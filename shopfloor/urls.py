"""
URLconf mounting every shopfloor app, plus /health.

A single-service deployment includes only its app's urls and
`health` instead:

    urlpatterns = [
        path('health', health),
        path('', include('shopfloor.inventory.urls')),
    ]
"""

from django.http import JsonResponse
from django.urls import include, path

from shopfloor.api import api_view
from shopfloor.conf import shopfloor_settings


@api_view(['GET'])
def health(request):
    return JsonResponse({
        'success': True,
        'status': 'ok',
        'service': shopfloor_settings.SERVICE_NAME,
    })


urlpatterns = [
    path('health', health, name='health'),
    path('', include('shopfloor.inventory.urls')),
    path('', include('shopfloor.production.urls')),
    path('', include('shopfloor.machine_queue.urls')),
    path('', include('shopfloor.planning.urls')),
]
