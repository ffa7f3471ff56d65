# Generated manually for teams app

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ('teams', '0001_initial'),
        ('orders', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PlayerInfoSubmission',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('player_name', models.CharField(max_length=150)),
                ('jersey_number', models.CharField(blank=True, max_length=10)),
                ('size', models.CharField(max_length=10)),
                ('position', models.CharField(blank=True, max_length=50)),
                ('additional_notes', models.TextField(blank=True)),
                ('submitted_by_manager', models.BooleanField(default=False)),
                ('confirmed_by_player', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('design_request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='player_submissions', to='orders.designrequest')),
                ('team', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='player_submissions', to='teams.team')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='player_submissions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'player_info_submissions',
                'ordering': ['created_at'],
            },
        ),
    ]
