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
        ('trades', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Lot',
            fields=base_fields() + [
                ('purchase_date', models.DateField(db_index=True, verbose_name='purchase date')),
                ('original_quantity', models.DecimalField(decimal_places=2, max_digits=15, verbose_name='original quantity')),
                ('remaining_quantity', models.DecimalField(decimal_places=2, max_digits=15, verbose_name='remaining quantity')),
                ('unit_price', models.DecimalField(decimal_places=2, default=0, max_digits=15, verbose_name='unit price')),
                ('total_weight', models.DecimalField(decimal_places=2, default=0, max_digits=15, verbose_name='total weight (kg)')),
                ('shipper_location', models.CharField(blank=True, max_length=255, verbose_name='shipper location')),
                ('sender', models.CharField(blank=True, max_length=255, verbose_name='sender')),
                ('status', models.CharField(choices=[('AVAILABLE', 'Available'), ('DEPLETED', 'Depleted')], db_index=True, default='AVAILABLE', max_length=10, verbose_name='status')),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='catalog.company', verbose_name='supplier')),
                ('parent_lot', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='fragments', to='inventory.lot', verbose_name='split from')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='catalog.product', verbose_name='product')),
                ('trade_line', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='trades.tradeline', verbose_name='purchase line')),
                ('warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='lots', to='catalog.warehouse', verbose_name='warehouse')),
            ],
            options={
                'verbose_name': 'lot',
                'verbose_name_plural': 'lots',
                'ordering': ['purchase_date', 'created_at'],
                'indexes': [
                    models.Index(fields=['product', 'status', 'purchase_date'], name='lot_product_status_idx'),
                    models.Index(fields=['trade_line'], name='lot_trade_line_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('remaining_quantity__gte', 0)), name='lot_remaining_non_negative'),
                    models.CheckConstraint(condition=models.Q(('remaining_quantity__lte', models.F('original_quantity'))), name='lot_remaining_within_original'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Allocation',
            fields=base_fields() + [
                ('matched_quantity', models.DecimalField(decimal_places=2, max_digits=15, verbose_name='matched quantity')),
                ('lot', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='inventory.lot', verbose_name='lot')),
                ('sale_line', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='allocations', to='trades.tradeline', verbose_name='sale line')),
            ],
            options={
                'verbose_name': 'allocation',
                'verbose_name_plural': 'allocations',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['sale_line'], name='alloc_sale_line_idx'),
                    models.Index(fields=['lot'], name='alloc_lot_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('matched_quantity__gt', 0)), name='allocation_quantity_positive'),
                ],
            },
        ),
        migrations.CreateModel(
            name='LotAdjustment',
            fields=base_fields() + [
                ('adjustment_type', models.CharField(choices=[('DISPOSAL', 'Disposal'), ('LOSS', 'Loss'), ('CORRECTION', 'Correction')], max_length=12, verbose_name='adjustment type')),
                ('quantity_change', models.DecimalField(decimal_places=2, max_digits=15, verbose_name='quantity change')),
                ('reason', models.CharField(blank=True, max_length=255, verbose_name='reason')),
                ('lot', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='adjustments', to='inventory.lot', verbose_name='lot')),
            ],
            options={
                'verbose_name': 'lot adjustment',
                'verbose_name_plural': 'lot adjustments',
                'ordering': ['-created_at'],
            },
        ),
    ]
