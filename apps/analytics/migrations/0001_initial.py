import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='UtilizationReport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_date', models.DateField()),
                ('end_date', models.DateField()),
                ('summary', models.JSONField(default=dict)),
                ('daily', models.JSONField(default=list)),
                ('sections', models.JSONField(default=list)),
                ('users', models.JSONField(default=list)),
                ('advanced', models.JSONField(default=dict)),
                ('version', models.PositiveIntegerField(default=1)),
                ('generation_source', models.CharField(choices=[('manual', 'Manual'), ('scheduled', 'Scheduled'), ('api', 'API'), ('admin', 'Admin'), ('system', 'System')], default='manual', max_length=16)),
                ('generated_by', models.CharField(blank=True, max_length=254)),
                ('process_time_ms', models.PositiveIntegerField(default=0)),
                ('generated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField(db_index=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Utilization report',
                'verbose_name_plural': 'Utilization reports',
                'ordering': ['-generated_at'],
                'constraints': [models.UniqueConstraint(fields=('start_date', 'end_date'), name='report_unique_period')],
            },
        ),
    ]
