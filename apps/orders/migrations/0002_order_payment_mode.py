# Generated manually for orders app

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('orders', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='order',
            name='payment_mode',
            field=models.CharField(choices=[('individual', 'Individual'), ('manager_pays_all', 'Manager pays all')], default='individual', max_length=20),
        ),
    ]
