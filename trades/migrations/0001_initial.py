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


def money(verbose_name):
    return models.DecimalField(decimal_places=2, default=0, max_digits=15, verbose_name=verbose_name)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TradeMaster',
            fields=base_fields() + [
                ('trade_number', models.CharField(max_length=32, unique=True, verbose_name='trade number')),
                ('trade_type', models.CharField(choices=[('PURCHASE', 'Purchase'), ('SALE', 'Sale'), ('PRODUCTION', 'Production')], db_index=True, max_length=10, verbose_name='trade type')),
                ('trade_date', models.DateField(db_index=True, verbose_name='trade date')),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('CONFIRMED', 'Confirmed'), ('CANCELLED', 'Cancelled')], db_index=True, default='DRAFT', max_length=10, verbose_name='status')),
                ('total_amount', money('supply amount')),
                ('tax_amount', money('tax amount')),
                ('total_price', money('total price')),
                ('payment_method', models.CharField(blank=True, max_length=30, verbose_name='payment method')),
                ('notes', models.TextField(blank=True, verbose_name='notes')),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='trades', to='catalog.company', verbose_name='company')),
                ('warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='trades', to='catalog.warehouse', verbose_name='warehouse')),
            ],
            options={
                'verbose_name': 'trade document',
                'verbose_name_plural': 'trade documents',
                'ordering': ['-trade_date', '-trade_number'],
                'indexes': [
                    models.Index(fields=['company', 'trade_date', 'trade_type'], name='trade_company_date_type_idx'),
                    models.Index(fields=['trade_type', 'trade_date'], name='trade_type_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TradeLine',
            fields=base_fields() + [
                ('seq_no', models.PositiveIntegerField(verbose_name='sequence')),
                ('quantity', models.DecimalField(decimal_places=2, max_digits=15, verbose_name='quantity')),
                ('total_weight', money('total weight (kg)')),
                ('unit_price', money('unit price')),
                ('supply_amount', money('supply amount')),
                ('tax_amount', money('tax amount')),
                ('total_amount', money('line amount')),
                ('auction_price', money('auction price')),
                ('purchase_price', models.DecimalField(blank=True, decimal_places=2, help_text='Cost basis carried for margin reporting', max_digits=15, null=True, verbose_name='purchase price')),
                ('shipper_location', models.CharField(blank=True, max_length=255, verbose_name='shipper location')),
                ('sender', models.CharField(blank=True, max_length=255, verbose_name='sender')),
                ('notes', models.CharField(blank=True, max_length=500, verbose_name='notes')),
                ('matching_status', models.CharField(choices=[('UNMATCHED', 'Unmatched'), ('PARTIAL', 'Partially matched'), ('MATCHED', 'Matched')], db_index=True, default='UNMATCHED', max_length=10, verbose_name='matching status')),
                ('parent_line', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='returns', to='trades.tradeline', verbose_name='returned line')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='trade_lines', to='catalog.product', verbose_name='product')),
                ('trade', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='trades.trademaster', verbose_name='trade')),
            ],
            options={
                'verbose_name': 'trade line',
                'verbose_name_plural': 'trade lines',
                'ordering': ['trade', 'seq_no'],
                'indexes': [
                    models.Index(fields=['trade', 'seq_no'], name='tradeline_trade_seq_idx'),
                    models.Index(fields=['product'], name='tradeline_product_idx'),
                ],
            },
        ),
    ]
