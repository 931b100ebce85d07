"""
Initial migration for machine queue models.
"""

from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create machine queue models: Machine, QueueEntry."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Machine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('machine_id', models.CharField(help_text='Ex: CNC-01', max_length=50, unique=True, verbose_name='Código')),
                ('name', models.CharField(max_length=200, verbose_name='Nome')),
                ('machine_type', models.CharField(blank=True, db_index=True, max_length=50, verbose_name='Tipo')),
                ('status', models.CharField(choices=[('operational', 'Operacional'), ('maintenance', 'Em Manutenção'), ('offline', 'Desligada')], db_index=True, default='operational', max_length=20, verbose_name='Status')),
                ('hours_per_day', models.DecimalField(decimal_places=1, default=Decimal('8'), max_digits=4, verbose_name='Horas por Dia')),
                ('location', models.CharField(blank=True, max_length=100, verbose_name='Local')),
                ('notes', models.TextField(blank=True, verbose_name='Observações')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Máquina',
                'verbose_name_plural': 'Máquinas',
                'ordering': ['machine_id'],
            },
        ),
        migrations.CreateModel(
            name='QueueEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('queue_id', models.CharField(max_length=50, unique=True, verbose_name='Código')),
                ('batch_id', models.CharField(db_index=True, help_text='Número do lote de produção', max_length=100, verbose_name='Lote')),
                ('product_name', models.CharField(blank=True, max_length=200, verbose_name='Produto')),
                ('step_id', models.PositiveIntegerField(blank=True, null=True, verbose_name='Etapa (ID)')),
                ('step_name', models.CharField(blank=True, max_length=100, verbose_name='Etapa')),
                ('position', models.PositiveIntegerField(default=0, verbose_name='Posição')),
                ('status', models.CharField(choices=[('waiting', 'Aguardando'), ('in_progress', 'Em Andamento'), ('paused', 'Pausado'), ('completed', 'Concluído'), ('cancelled', 'Cancelado')], db_index=True, default='waiting', max_length=20, verbose_name='Status')),
                ('priority', models.CharField(choices=[('low', 'Baixa'), ('normal', 'Normal'), ('high', 'Alta'), ('urgent', 'Urgente')], default='normal', max_length=10, verbose_name='Prioridade')),
                ('hours_required', models.DecimalField(decimal_places=2, default=Decimal('1'), max_digits=8, verbose_name='Horas Necessárias')),
                ('scheduled_start', models.DateTimeField(blank=True, null=True, verbose_name='Início Previsto')),
                ('scheduled_end', models.DateTimeField(blank=True, null=True, verbose_name='Fim Previsto')),
                ('actual_start', models.DateTimeField(blank=True, null=True, verbose_name='Início Real')),
                ('actual_end', models.DateTimeField(blank=True, null=True, verbose_name='Fim Real')),
                ('operator_id', models.CharField(blank=True, max_length=50, verbose_name='Operador (ID)')),
                ('operator_name', models.CharField(blank=True, max_length=150, verbose_name='Operador')),
                ('notes', models.TextField(blank=True, verbose_name='Observações')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Entrada na fila')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('machine', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='entries', to='machine_queue.machine', verbose_name='Máquina')),
            ],
            options={
                'verbose_name': 'Item da Fila',
                'verbose_name_plural': 'Itens da Fila',
                'ordering': ['machine', 'position', 'created_at', 'pk'],
                'indexes': [models.Index(fields=['machine', 'status', 'position'], name='mq_entry_machine_status_idx')],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'in_progress')), fields=('machine',), name='machine_queue_one_in_progress_per_machine'),
                ],
            },
        ),
    ]
