"""
Initial migration for inventory models.
"""

from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    """Create inventory models: Material, Reservation, ReservationLine, MaterialTransaction."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Material',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('material_id', models.CharField(help_text='Ex: MAT001', max_length=50, unique=True, verbose_name='Código')),
                ('name', models.CharField(max_length=200, verbose_name='Nome')),
                ('material_type', models.CharField(choices=[('raw', 'Matéria-prima'), ('component', 'Componente'), ('consumable', 'Consumível'), ('packaging', 'Embalagem'), ('other', 'Outro')], db_index=True, default='raw', max_length=20, verbose_name='Tipo')),
                ('unit_of_measure', models.CharField(default='unit', help_text='Ex: kg, m, unit', max_length=20, verbose_name='Unidade')),
                ('current_stock', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Estoque Atual')),
                ('reserved_stock', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Estoque Reservado')),
                ('available_stock', models.DecimalField(decimal_places=3, default=Decimal('0'), max_digits=12, verbose_name='Estoque Disponível')),
                ('minimum_stock', models.DecimalField(decimal_places=3, default=Decimal('0'), help_text='Relatório de estoque baixo dispara quando atual <= mínimo', max_digits=12, verbose_name='Estoque Mínimo')),
                ('standard_cost', models.DecimalField(decimal_places=2, default=Decimal('0'), max_digits=12, verbose_name='Custo Padrão')),
                ('supplier', models.CharField(blank=True, max_length=200, verbose_name='Fornecedor')),
                ('version', models.PositiveIntegerField(default=0, help_text='Incrementada a cada alteração de estoque', verbose_name='Versão')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadados')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Material',
                'verbose_name_plural': 'Materiais',
                'ordering': ['material_id'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('available_stock', models.F('current_stock') - models.F('reserved_stock'))), name='inventory_material_available_eq_current_minus_reserved'),
                    models.CheckConstraint(condition=models.Q(('reserved_stock__gte', 0), ('reserved_stock__lte', models.F('current_stock'))), name='inventory_material_reserved_within_current'),
                    models.CheckConstraint(condition=models.Q(('current_stock__gte', 0)), name='inventory_material_current_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Reservation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('batch_id', models.CharField(db_index=True, help_text='Número do lote de produção', max_length=100, verbose_name='Lote')),
                ('status', models.CharField(choices=[('pending', 'Pendente'), ('reserved', 'Reservado'), ('released', 'Liberado')], db_index=True, default='pending', max_length=20, verbose_name='Status')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, verbose_name='Criado em')),
                ('released_at', models.DateTimeField(blank=True, null=True, verbose_name='Liberado em')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadados')),
            ],
            options={
                'verbose_name': 'Reserva',
                'verbose_name_plural': 'Reservas',
                'ordering': ['-created_at', '-pk'],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status__in', ['pending', 'reserved'])), fields=('batch_id',), name='inventory_reservation_one_active_per_batch'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReservationLine',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity_reserved', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantidade Reservada')),
                ('unit_of_measure', models.CharField(blank=True, max_length=20, verbose_name='Unidade')),
                ('material', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reservation_lines', to='inventory.material', verbose_name='Material')),
                ('reservation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='inventory.reservation', verbose_name='Reserva')),
            ],
            options={
                'verbose_name': 'Item da Reserva',
                'verbose_name_plural': 'Itens da Reserva',
                'ordering': ['pk'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('quantity_reserved__gt', 0)), name='inventory_reservationline_quantity_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MaterialTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('receipt', 'Entrada'), ('issue', 'Consumo'), ('adjustment', 'Ajuste'), ('reservation', 'Reserva'), ('release', 'Liberação')], db_index=True, max_length=20, verbose_name='Tipo')),
                ('quantity', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Quantidade')),
                ('current_after', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Atual após')),
                ('reserved_after', models.DecimalField(decimal_places=3, max_digits=12, verbose_name='Reservado após')),
                ('reference', models.CharField(blank=True, db_index=True, help_text='Ex: número do lote, nota fiscal', max_length=100, verbose_name='Referência')),
                ('reason', models.CharField(blank=True, max_length=255, verbose_name='Motivo')),
                ('user', models.CharField(blank=True, max_length=150, verbose_name='Usuário')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Data/Hora')),
                ('material', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='transactions', to='inventory.material', verbose_name='Material')),
            ],
            options={
                'verbose_name': 'Transação de Material',
                'verbose_name_plural': 'Transações de Material',
                'ordering': ['timestamp', 'pk'],
                'indexes': [models.Index(fields=['material', 'timestamp'], name='inventory_tx_material_ts_idx')],
            },
        ),
    ]
