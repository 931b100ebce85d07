"""
Enums for machine queue models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class MachineStatus(models.TextChoices):
    OPERATIONAL = 'operational', _('Operacional')
    MAINTENANCE = 'maintenance', _('Em Manutenção')
    OFFLINE = 'offline', _('Desligada')


class QueueStatus(models.TextChoices):
    """Queue entry lifecycle status."""
    WAITING = 'waiting', _('Aguardando')          # position 1..n
    IN_PROGRESS = 'in_progress', _('Em Andamento') # position 0
    PAUSED = 'paused', _('Pausado')               # position 0, machine still occupied
    COMPLETED = 'completed', _('Concluído')
    CANCELLED = 'cancelled', _('Cancelado')

    @classmethod
    def active(cls) -> list[str]:
        return [cls.WAITING, cls.IN_PROGRESS, cls.PAUSED]

    @classmethod
    def occupying(cls) -> list[str]:
        """Statuses that keep the machine busy."""
        return [cls.IN_PROGRESS, cls.PAUSED]

    @classmethod
    def terminal(cls) -> list[str]:
        return [cls.COMPLETED, cls.CANCELLED]
