from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Cubicle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('section', models.CharField(db_index=True, max_length=1)),
                ('row', models.PositiveSmallIntegerField()),
                ('col', models.PositiveSmallIntegerField()),
                ('serial', models.CharField(help_text='Section letter plus ordinal within the section, e.g. A7.', max_length=16, unique=True)),
                ('name', models.CharField(blank=True, max_length=100)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('operational_status', models.CharField(choices=[('available', 'Available'), ('reserved', 'Reserved'), ('error', 'Out of service')], default='available', help_text='Global maintenance flag, independent of date-scoped reservations.', max_length=16)),
                ('created_by', models.CharField(blank=True, max_length=254)),
                ('last_modified_by', models.CharField(blank=True, max_length=254)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Cubicle',
                'verbose_name_plural': 'Cubicles',
                'ordering': ['section', 'row', 'col'],
                'indexes': [models.Index(fields=['operational_status'], name='cubicle_status_idx')],
                'constraints': [models.UniqueConstraint(fields=('section', 'row', 'col'), name='cubicle_unique_grid_position')],
            },
        ),
    ]
