import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('cubicles', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='GridDate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(unique=True)),
                ('total_reservations', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('last_activity', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Grid date',
                'verbose_name_plural': 'Grid dates',
                'ordering': ['-date'],
                'indexes': [models.Index(fields=['is_active', 'date'], name='griddate_active_date_idx')],
            },
        ),
        migrations.CreateModel(
            name='Reservation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_uid', models.CharField(db_index=True, max_length=64)),
                ('user_email', models.EmailField(max_length=254)),
                ('user_display_name', models.CharField(blank=True, max_length=150)),
                ('date', models.DateField()),
                ('status', models.CharField(choices=[('active', 'Active'), ('checked_in', 'Checked in'), ('checked_out', 'Checked out'), ('cancelled', 'Cancelled'), ('no_show', 'No-show'), ('expired', 'Expired')], default='active', max_length=16)),
                ('version', models.PositiveIntegerField(default=1, help_text='Incremented on every lifecycle write; writes compare-and-swap on it.')),
                ('reserved_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('checked_in_at', models.DateTimeField(blank=True, null=True)),
                ('checked_out_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('cancellation_reason', models.CharField(blank=True, max_length=255)),
                ('planned_duration_hours', models.DecimalField(blank=True, decimal_places=2, max_digits=4, null=True)),
                ('actual_duration_hours', models.DecimalField(blank=True, decimal_places=2, max_digits=4, null=True)),
                ('notes', models.TextField(blank=True)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cubicle', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reservations', to='cubicles.cubicle')),
            ],
            options={
                'verbose_name': 'Reservation',
                'verbose_name_plural': 'Reservations',
                'ordering': ['-date', '-reserved_at'],
                'indexes': [
                    models.Index(fields=['date', 'status'], name='reservation_date_status_idx'),
                    models.Index(fields=['user_uid', 'date'], name='reservation_user_date_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'cancelled'), _negated=True), fields=('cubicle', 'date'), name='reservation_one_live_per_cubicle_date'),
                ],
            },
        ),
    ]
