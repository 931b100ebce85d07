"""
Enums for inventory models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class MaterialType(models.TextChoices):
    RAW = 'raw', _('Matéria-prima')
    COMPONENT = 'component', _('Componente')
    CONSUMABLE = 'consumable', _('Consumível')
    PACKAGING = 'packaging', _('Embalagem')
    OTHER = 'other', _('Outro')


class SupplierStatus(models.TextChoices):
    ACTIVE = 'active', _('Ativo')
    INACTIVE = 'inactive', _('Inativo')
    BLACKLISTED = 'blacklisted', _('Bloqueado')


class ReservationStatus(models.TextChoices):
    """Reservation lifecycle status."""
    PENDING = 'pending', _('Pendente')      # Being created
    RESERVED = 'reserved', _('Reservado')   # Stock moved to reserved
    RELEASED = 'released', _('Liberado')    # Stock moved back to available
    CONSUMED = 'consumed', _('Consumido')   # Stock issued to the finished batch

    @classmethod
    def active(cls) -> list[str]:
        return [cls.PENDING, cls.RESERVED]


class TransactionKind(models.TextChoices):
    """What a MaterialTransaction recorded."""
    RECEIPT = 'receipt', _('Entrada')           # current +
    ISSUE = 'issue', _('Consumo')               # current -
    ADJUSTMENT = 'adjustment', _('Ajuste')      # current = counted
    RESERVATION = 'reservation', _('Reserva')   # reserved +
    RELEASE = 'release', _('Liberação')         # reserved -
