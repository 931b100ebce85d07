"""
Supplier model (Material.supplier becomes a foreign key) and the
CONSUMED reservation status.
"""

from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('inventory', '0002_remove_available_equation_constraint'),
    ]

    operations = [
        migrations.CreateModel(
            name='Supplier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('supplier_id', models.CharField(help_text='Ex: SUP-1A2B3C', max_length=50, unique=True, verbose_name='Código')),
                ('name', models.CharField(max_length=200, verbose_name='Nome')),
                ('contact_person', models.CharField(blank=True, max_length=200, verbose_name='Contato')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='E-mail')),
                ('phone', models.CharField(blank=True, max_length=50, verbose_name='Telefone')),
                ('address', models.CharField(blank=True, max_length=300, verbose_name='Endereço')),
                ('city', models.CharField(blank=True, max_length=100, verbose_name='Cidade')),
                ('country', models.CharField(blank=True, max_length=100, verbose_name='País')),
                ('postal_code', models.CharField(blank=True, max_length=20, verbose_name='CEP')),
                ('website', models.CharField(blank=True, max_length=200, verbose_name='Site')),
                ('payment_terms', models.CharField(blank=True, max_length=100, verbose_name='Condições de Pagamento')),
                ('lead_time_days', models.PositiveIntegerField(default=0, help_text='Em dias', verbose_name='Prazo de Entrega')),
                ('rating', models.DecimalField(decimal_places=1, default=Decimal('0'), help_text='De 0 a 5', max_digits=2, verbose_name='Avaliação')),
                ('status', models.CharField(choices=[('active', 'Ativo'), ('inactive', 'Inativo'), ('blacklisted', 'Bloqueado')], db_index=True, default='active', max_length=20, verbose_name='Status')),
                ('notes', models.TextField(blank=True, verbose_name='Observações')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Fornecedor',
                'verbose_name_plural': 'Fornecedores',
                'ordering': ['name', 'supplier_id'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('rating__gte', 0), ('rating__lte', 5)), name='inventory_supplier_rating_range'),
                ],
            },
        ),
        migrations.RemoveField(
            model_name='material',
            name='supplier',
        ),
        migrations.AddField(
            model_name='material',
            name='supplier',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='materials', to='inventory.supplier', verbose_name='Fornecedor'),
        ),
        migrations.AddField(
            model_name='reservation',
            name='consumed_at',
            field=models.DateTimeField(blank=True, null=True, verbose_name='Consumido em'),
        ),
        migrations.AlterField(
            model_name='reservation',
            name='status',
            field=models.CharField(choices=[('pending', 'Pendente'), ('reserved', 'Reservado'), ('released', 'Liberado'), ('consumed', 'Consumido')], db_index=True, default='pending', max_length=20, verbose_name='Status'),
        ),
    ]
