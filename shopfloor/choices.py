"""
Choices shared across apps.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Priority(models.TextChoices):
    LOW = 'low', _('Baixa')
    NORMAL = 'normal', _('Normal')
    HIGH = 'high', _('Alta')
    URGENT = 'urgent', _('Urgente')

    @classmethod
    def rank(cls, value) -> int:
        """Higher number = more urgent. Unknown values rank as normal."""
        return PRIORITY_RANK.get(value, PRIORITY_RANK[cls.NORMAL])


PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.NORMAL: 1,
    Priority.HIGH: 2,
    Priority.URGENT: 3,
}
