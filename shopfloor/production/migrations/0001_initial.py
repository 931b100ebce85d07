"""
Initial migration for production models.
"""

from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

PRIORITY_CHOICES = [('low', 'Baixa'), ('normal', 'Normal'), ('high', 'Alta'), ('urgent', 'Urgente')]
BATCH_STATUS_CHOICES = [
    ('pending', 'Pendente'), ('scheduled', 'Agendado'), ('in_progress', 'Em Andamento'),
    ('completed', 'Concluído'), ('cancelled', 'Cancelado'),
]


class Migration(migrations.Migration):
    """Create production models: ProductionRequest, ProductionBatch, ProductionStep, BatchMaterial."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ProductionRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('request_id', models.CharField(help_text='Ex: REQ-2024-001', max_length=50, unique=True, verbose_name='Código')),
                ('product_name', models.CharField(max_length=200, verbose_name='Produto')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantidade')),
                ('priority', models.CharField(choices=PRIORITY_CHOICES, db_index=True, default='normal', max_length=10, verbose_name='Prioridade')),
                ('due_date', models.DateField(blank=True, null=True, verbose_name='Prazo')),
                ('status', models.CharField(choices=[('received', 'Recebida'), ('planned', 'Planejada'), ('in_production', 'Em Produção'), ('completed', 'Concluída'), ('cancelled', 'Cancelada')], db_index=True, default='received', max_length=20, verbose_name='Status')),
                ('notes', models.TextField(blank=True, verbose_name='Observações')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Solicitação de Produção',
                'verbose_name_plural': 'Solicitações de Produção',
                'ordering': ['-created_at', '-pk'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gte', 1)), name='production_request_quantity_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProductionBatch',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('batch_number', models.CharField(max_length=50, unique=True, verbose_name='Número do Lote')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantidade')),
                ('scheduled_start_date', models.DateField(blank=True, null=True, verbose_name='Início Previsto')),
                ('scheduled_end_date', models.DateField(blank=True, null=True, verbose_name='Fim Previsto')),
                ('status', models.CharField(choices=BATCH_STATUS_CHOICES, db_index=True, default='pending', max_length=20, verbose_name='Status')),
                ('materials_assigned', models.BooleanField(default=False, verbose_name='Materiais Reservados')),
                ('machine_assigned', models.BooleanField(default=False, verbose_name='Máquinas Atribuídas')),
                ('notes', models.TextField(blank=True, verbose_name='Observações')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('request', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='batches', to='production.productionrequest', verbose_name='Solicitação')),
            ],
            options={
                'verbose_name': 'Lote de Produção',
                'verbose_name_plural': 'Lotes de Produção',
                'ordering': ['-created_at', '-pk'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity__gte', 1)), name='production_batch_quantity_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BatchMaterial',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('material_id', models.CharField(max_length=50, verbose_name='Material')),
                ('quantity_required', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantidade Necessária')),
                ('unit_of_measure', models.CharField(blank=True, max_length=20, verbose_name='Unidade')),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='materials', to='production.productionbatch', verbose_name='Lote')),
            ],
            options={
                'verbose_name': 'Material do Lote',
                'verbose_name_plural': 'Materiais do Lote',
                'ordering': ['pk'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity_required__gt', 0)), name='production_batchmaterial_quantity_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProductionStep',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('step_name', models.CharField(max_length=100, verbose_name='Etapa')),
                ('step_order', models.PositiveIntegerField(verbose_name='Ordem')),
                ('machine_type', models.CharField(blank=True, max_length=50, verbose_name='Tipo de Máquina')),
                ('machine_id', models.CharField(blank=True, max_length=50, verbose_name='Máquina')),
                ('hours_required', models.DecimalField(decimal_places=2, default=Decimal('1'), max_digits=8, verbose_name='Horas Necessárias')),
                ('scheduled_start', models.DateTimeField(blank=True, null=True, verbose_name='Início Previsto')),
                ('scheduled_end', models.DateTimeField(blank=True, null=True, verbose_name='Fim Previsto')),
                ('actual_start', models.DateTimeField(blank=True, null=True, verbose_name='Início Real')),
                ('actual_end', models.DateTimeField(blank=True, null=True, verbose_name='Fim Real')),
                ('status', models.CharField(choices=BATCH_STATUS_CHOICES, db_index=True, default='pending', max_length=20, verbose_name='Status')),
                ('operator_id', models.CharField(blank=True, max_length=50, verbose_name='Operador')),
                ('notes', models.TextField(blank=True, verbose_name='Observações')),
                ('batch', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='steps', to='production.productionbatch', verbose_name='Lote')),
            ],
            options={
                'verbose_name': 'Etapa de Produção',
                'verbose_name_plural': 'Etapas de Produção',
                'ordering': ['batch', 'step_order'],
                'constraints': [
                    models.UniqueConstraint(fields=('batch', 'step_order'), name='production_step_unique_order'),
                ],
            },
        ),
    ]
