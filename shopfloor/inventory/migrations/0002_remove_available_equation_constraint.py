# Generated manually — removes inventory_material_available_eq_current_minus_reserved.
# SQLite evaluates the subtraction in floating point, so 0.3 - 0.1 != 0.2 there.
# write_stock() recomputes available_stock; check_stock_integrity audits it.

from django.db import migrations


class Migration(migrations.Migration):

    dependencies = [
        ('inventory', '0001_initial'),
    ]

    operations = [
        migrations.RemoveConstraint(
            model_name='material',
            name='inventory_material_available_eq_current_minus_reserved',
        ),
    ]
