"""
Enums for production models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class RequestStatus(models.TextChoices):
    RECEIVED = 'received', _('Recebida')
    PLANNED = 'planned', _('Planejada')
    IN_PRODUCTION = 'in_production', _('Em Produção')
    COMPLETED = 'completed', _('Concluída')
    CANCELLED = 'cancelled', _('Cancelada')

    @classmethod
    def terminal(cls) -> list[str]:
        return [cls.COMPLETED, cls.CANCELLED]


class BatchStatus(models.TextChoices):
    """Batch (and step) lifecycle status."""
    PENDING = 'pending', _('Pendente')
    SCHEDULED = 'scheduled', _('Agendado')
    IN_PROGRESS = 'in_progress', _('Em Andamento')
    COMPLETED = 'completed', _('Concluído')
    CANCELLED = 'cancelled', _('Cancelado')

    @classmethod
    def terminal(cls) -> list[str]:
        return [cls.COMPLETED, cls.CANCELLED]


# Allowed batch transitions: from -> {to}
BATCH_TRANSITIONS = {
    BatchStatus.PENDING: {BatchStatus.SCHEDULED, BatchStatus.CANCELLED},
    BatchStatus.SCHEDULED: {BatchStatus.IN_PROGRESS, BatchStatus.CANCELLED},
    BatchStatus.IN_PROGRESS: {BatchStatus.COMPLETED, BatchStatus.CANCELLED},
    BatchStatus.COMPLETED: set(),
    BatchStatus.CANCELLED: set(),
}
