"""
Initial migration for planning models.
"""

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create ProductionPlan."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ProductionPlan',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('plan_id', models.CharField(max_length=50, unique=True, verbose_name='Código')),
                ('request_id', models.CharField(blank=True, db_index=True, help_text='Código da solicitação de produção', max_length=50, verbose_name='Solicitação')),
                ('product_name', models.CharField(max_length=200, verbose_name='Produto')),
                ('priority', models.CharField(choices=[('low', 'Baixa'), ('normal', 'Normal'), ('high', 'Alta'), ('urgent', 'Urgente')], default='normal', max_length=10, verbose_name='Prioridade')),
                ('planned_start_date', models.DateField(blank=True, null=True, verbose_name='Início Planejado')),
                ('planned_end_date', models.DateField(blank=True, null=True, verbose_name='Fim Planejado')),
                ('planned_batches', models.PositiveIntegerField(default=1, verbose_name='Lotes Planejados')),
                ('status', models.CharField(choices=[('draft', 'Rascunho'), ('approved', 'Aprovado'), ('cancelled', 'Cancelado')], db_index=True, default='draft', max_length=20, verbose_name='Status')),
                ('batch_numbers', models.JSONField(blank=True, default=list, verbose_name='Lotes Criados')),
                ('planning_notes', models.TextField(blank=True, verbose_name='Observações')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Plano de Produção',
                'verbose_name_plural': 'Planos de Produção',
                'ordering': ['-created_at', '-pk'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('planned_batches__gte', 1)), name='planning_plan_batches_positive'),
                ],
            },
        ),
    ]
