from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class MachineQueueConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'shopfloor.machine_queue'
    label = 'machine_queue'
    verbose_name = _('Fila de Máquinas')
