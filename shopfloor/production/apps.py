from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class ProductionConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'shopfloor.production'
    label = 'production'
    verbose_name = _('Gestão da Produção')
