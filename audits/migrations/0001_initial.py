import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def base_fields():
    return [
        ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, verbose_name='created at')),
        ('updated_at', models.DateTimeField(auto_now=True, verbose_name='updated at')),
        ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='created by')),
        ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL, verbose_name='updated by')),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('inventory', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='InventoryAudit',
            fields=base_fields() + [
                ('audit_date', models.DateField(verbose_name='audit date')),
                ('status', models.CharField(choices=[('IN_PROGRESS', 'In progress'), ('COMPLETED', 'Completed')], db_index=True, default='IN_PROGRESS', max_length=12, verbose_name='status')),
                ('notes', models.TextField(blank=True, verbose_name='notes')),
                ('warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audits', to='catalog.warehouse', verbose_name='warehouse')),
            ],
            options={
                'verbose_name': 'inventory audit',
                'verbose_name_plural': 'inventory audits',
                'ordering': ['-audit_date'],
            },
        ),
        migrations.CreateModel(
            name='InventoryAuditItem',
            fields=base_fields() + [
                ('expected_quantity', models.DecimalField(decimal_places=2, max_digits=15, verbose_name='expected quantity')),
                ('counted_quantity', models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True, verbose_name='counted quantity')),
                ('audit', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='audits.inventoryaudit', verbose_name='audit')),
                ('lot', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='audit_items', to='inventory.lot', verbose_name='lot')),
            ],
            options={
                'verbose_name': 'inventory audit item',
                'verbose_name_plural': 'inventory audit items',
            },
        ),
    ]
