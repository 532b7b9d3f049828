import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('cases', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Reconciliation',
            fields=[
                ('case_ptr', models.OneToOneField(auto_created=True, on_delete=django.db.models.deletion.CASCADE, parent_link=True, primary_key=True, serialize=False, to='cases.case')),
                ('issue_description', models.TextField(verbose_name='Issue Description')),
                ('additional_information', models.TextField(blank=True, default='', verbose_name='Additional Information')),
                ('outcome', models.CharField(choices=[('in-progress', 'In Progress'), ('resolved', 'Resolved'), ('unresolved', 'Unresolved')], default='in-progress', max_length=15, verbose_name='Outcome')),
                ('outcome_details', models.TextField(blank=True, default='', verbose_name='Outcome Details')),
                ('shaykh_notes', models.TextField(blank=True, default='', verbose_name='Shaykh Notes')),
            ],
            options={
                'verbose_name': 'Reconciliation',
                'verbose_name_plural': 'Reconciliations',
                'ordering': ['-created_at'],
            },
            bases=('cases.case',),
        ),
    ]
