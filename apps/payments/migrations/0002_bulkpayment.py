# Generated manually for payments app

import uuid
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ('payments', '0001_initial'),
        ('orders', '0002_order_payment_mode'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='BulkPayment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('currency', models.CharField(default='CLP', max_length=3)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')], default='pending', max_length=20)),
                ('external_reference', models.CharField(max_length=200, unique=True)),
                ('mp_preference_id', models.CharField(blank=True, max_length=200)),
                ('mp_payment_id', models.CharField(blank=True, max_length=100)),
                ('raw_payment_data', models.JSONField(blank=True, default=dict)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('needs_refund', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('total_amount_clp', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bulk_payments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'bulk_payments',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='BulkPaymentOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount_clp', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('bulk_payment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='order_links', to='payments.bulkpayment')),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bulk_payment_links', to='orders.order')),
            ],
            options={
                'db_table': 'bulk_payment_orders',
                'unique_together': {('bulk_payment', 'order')},
            },
        ),
        migrations.AddField(
            model_name='bulkpayment',
            name='orders',
            field=models.ManyToManyField(related_name='bulk_payments', through='payments.BulkPaymentOrder', to='orders.order'),
        ),
        migrations.AddIndex(
            model_name='bulkpayment',
            index=models.Index(fields=['user', 'status'], name='bulk_user_status_idx'),
        ),
    ]
