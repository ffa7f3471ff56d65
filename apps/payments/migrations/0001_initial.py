# Generated manually for payments app

import uuid
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('orders', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PaymentContribution',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount_clp', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
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
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payment_contributions', to='orders.order')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payment_contributions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'payment_contributions',
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='paymentcontribution',
            index=models.Index(fields=['order', 'status'], name='contrib_order_status_idx'),
        ),
        migrations.AddIndex(
            model_name='paymentcontribution',
            index=models.Index(fields=['user', 'status'], name='contrib_user_status_idx'),
        ),
        migrations.AddConstraint(
            model_name='paymentcontribution',
            constraint=models.UniqueConstraint(condition=models.Q(('status', 'approved')), fields=('order', 'user'), name='unique_approved_contribution'),
        ),
    ]
